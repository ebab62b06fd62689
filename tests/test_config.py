"""
Tests for configuration loading and logging setup.
"""

import logging
from pathlib import Path

import pytest

from catalogfix.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    Settings,
    find_config_file,
    load_settings,
)
from catalogfix.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    ENV_LEVEL,
    _StderrHandler,
    configure_cli_logging,
    level_number,
    resolve_level,
    setup_logging,
)


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = load_settings()

        assert settings.catalog_dir == "bucket"
        assert settings.http.timeout == 10
        assert settings.http.retries == 1
        assert settings.releases.recent_limit == 10
        assert settings.platform_os == "windows"

    def test_values_from_file(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text(
            "catalog_dir: manifests\n"
            "http:\n"
            "  timeout: 12\n"
            "  retries: 0\n"
            "releases:\n"
            "  recent_limit: 5\n"
            "non_standard_vendors: [mame]\n"
        )

        settings = load_settings(path)

        assert settings.http.timeout == 12
        assert settings.http.retries == 0
        assert settings.releases.recent_limit == 5
        assert settings.non_standard_vendors == ["mame"]
        assert settings.root == tmp_path.resolve()
        assert settings.catalog_path == tmp_path.resolve() / "manifests"
        assert settings.ledger_path == tmp_path.resolve() / ".state" / "reconcile.ndjson"

    def test_empty_file_means_defaults(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("")
        assert load_settings(path).catalog_dir == "bucket"

    def test_absolute_catalog_dir(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        other = tmp_path / "elsewhere"
        path.write_text(f"catalog_dir: {other}\n")
        assert load_settings(path).catalog_path == other

    @pytest.mark.parametrize("body", [
        "http:\n  timeout: 20\n",
        "http:\n  retries: 3\n",
        "releases:\n  recent_limit: 0\n",
    ])
    def test_out_of_range_rejected(self, tmp_path: Path, body):
        path = tmp_path / CONFIG_FILE
        path.write_text(body)
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(path)

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("catalog_dir: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_explicit_missing_path(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_forge_tokens_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "abc")
        assert Settings().forge_tokens() == {"api.github.com": "abc"}
        monkeypatch.delenv("GITHUB_TOKEN")
        assert Settings().forge_tokens() == {}


class TestFindConfigFile:
    def test_walks_up(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE).write_text("catalog_dir: bucket\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / CONFIG_FILE).resolve()

    def test_search_from_cwd(self, tmp_path: Path, monkeypatch):
        (tmp_path / CONFIG_FILE).write_text("platform_os: linux\n")
        sub = tmp_path / "sub"
        sub.mkdir()
        monkeypatch.chdir(sub)
        settings = load_settings()
        assert settings.platform_os == "linux"
        assert settings.root == tmp_path.resolve()


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        before, level = root.handlers[:], root.level
        yield
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)

    def _ours(self):
        return [h for h in logging.getLogger().handlers if isinstance(h, _StderrHandler)]

    def test_console_level(self):
        setup_logging("INFO")
        assert logging.getLogger().level == logging.INFO
        assert len(self._ours()) == 1

    def test_repeat_call_replaces_console_handler(self):
        setup_logging("INFO")
        setup_logging("DEBUG")
        handlers = self._ours()
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG

    def test_unknown_level_is_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "cfx.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("catalogfix.test").debug("written to file only")
        for h in root.handlers:
            h.flush()
        assert "written to file only" in log_file.read_text()


class TestResolveLevel:
    def test_default_is_warning(self):
        assert resolve_level(environ={}) == logging.WARNING

    def test_flags_beat_environment(self):
        env = {ENV_LEVEL: "ERROR"}
        assert resolve_level(debug=True, environ=env) == logging.DEBUG
        assert resolve_level(verbose=True, environ=env) == logging.INFO
        assert resolve_level(debug=True, verbose=True, quiet=True, environ={}) == logging.DEBUG

    def test_quiet(self):
        assert resolve_level(quiet=True, environ={}) == logging.ERROR

    def test_environment_level(self):
        assert resolve_level(environ={ENV_LEVEL: "info"}) == logging.INFO

    def test_bad_environment_level_falls_back(self):
        assert resolve_level(environ={ENV_LEVEL: "chatty"}) == logging.WARNING

    def test_level_number(self):
        assert level_number("debug") == logging.DEBUG
        assert level_number("") == logging.WARNING
        assert level_number("nope", logging.ERROR) == logging.ERROR


class TestConfigureCliLogging:
    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        before, level = root.handlers[:], root.level
        yield
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)

    def test_returns_applied_level(self):
        assert configure_cli_logging(verbose=True, environ={}) == logging.INFO
        assert logging.getLogger().level == logging.INFO

    def test_log_file_from_environment(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        env = {ENV_FILE: str(log_file), ENV_FILE_LEVEL: "DEBUG"}
        level = configure_cli_logging(quiet=True, environ=env)

        assert level == logging.ERROR
        assert logging.getLogger().level == logging.DEBUG
        logging.getLogger("catalogfix.test").debug("detail for the file")
        for h in logging.getLogger().handlers:
            h.flush()
        assert "detail for the file" in log_file.read_text()
