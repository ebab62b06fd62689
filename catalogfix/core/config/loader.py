"""
Configuration loader — reads catalogfix.yml into Settings.

The file is optional: without one, every setting takes its default and
paths resolve against the working directory.  A file that exists but
does not parse or validate is an error.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "catalogfix.yml"


class ConfigError(Exception):
    """Raised when catalogfix.yml is unreadable or invalid."""


class HttpSettings(BaseModel):
    timeout: float = Field(default=10, ge=5, le=15)
    retries: int = Field(default=1, ge=0, le=1)
    user_agent: str | None = None


class ReleaseSettings(BaseModel):
    recent_limit: int = Field(default=10, ge=1, le=100)
    token_env: str = "GITHUB_TOKEN"


class Settings(BaseModel):
    """Validated contents of catalogfix.yml.

    ``root`` is the directory relative paths resolve against; the loader
    sets it to the config file's directory.
    """

    catalog_dir: str = "bucket"
    http: HttpSettings = Field(default_factory=HttpSettings)
    releases: ReleaseSettings = Field(default_factory=ReleaseSettings)
    non_standard_vendors: list[str] = Field(default_factory=list)
    platform_os: str = "windows"
    ledger: str = ".state/reconcile.ndjson"
    checkver_command: str | None = None
    root: Path = Field(default_factory=Path.cwd, exclude=True)

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.root / path

    @property
    def catalog_path(self) -> Path:
        return self._resolve(self.catalog_dir)

    @property
    def ledger_path(self) -> Path:
        return self._resolve(self.ledger)

    def forge_tokens(self) -> dict[str, str]:
        """``{host: token}`` for authenticated forge API calls."""
        token = os.environ.get(self.releases.token_env, "")
        return {"api.github.com": token} if token else {}


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for catalogfix.yml starting from ``start_dir``, walking up.

    Returns:
        Path to the file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config path.  If None, searches upward from cwd.

    Returns:
        Validated Settings (defaults when no file is found).

    Raises:
        ConfigError: If an explicit path is missing, or the file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found — using defaults", CONFIG_FILE)
        return Settings()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    data.pop("root", None)
    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    settings.root = path.parent.resolve()
    logger.info("Loaded settings from %s (catalog: %s)", path, settings.catalog_path)
    return settings
