"""
Tests for adapters — forge APIs, detectors, HTTP client, notifier.
"""

import json
import logging
import shutil

import pytest

from catalogfix.adapters.detectors import CheckverDetector, CommandDetector, json_path_lookup
from catalogfix.adapters.forges import ForgeRouter, GitHubReleaseAPI
from catalogfix.adapters.forges.github import parse_release
from catalogfix.adapters.http import HttpClient
from catalogfix.adapters.mock import FakeHttpClient, FakeReleaseAPI
from catalogfix.adapters.notifiers import LogNotifier
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models import (
    CatalogEntry,
    CheckverConfig,
    IssueKind,
    IssueRecord,
    Release,
    RepoRef,
    Severity,
)

GH_API = "https://api.github.com/repos/acme/app"

GH_RELEASE = {
    "tag_name": "v1.0",
    "name": "App 1.0",
    "prerelease": False,
    "draft": False,
    "assets": [
        {
            "name": "app-1.0-win64.zip",
            "browser_download_url": "https://github.com/acme/app/releases/download/v1.0/app-1.0-win64.zip",
            "size": 1234,
            "digest": "sha256:" + "ab" * 32,
        },
        {"name": "no-url.zip"},
    ],
}


# ── RepoRef ─────────────────────────────────────────────────────


class TestRepoRef:
    def test_owner_repo(self):
        assert RepoRef.parse("acme/app") == RepoRef(path="acme/app")

    def test_github_url_with_tail(self):
        repo = RepoRef.parse("https://github.com/acme/app/releases/tag/v1.0")
        assert repo.forge == "github"
        assert repo.path == "acme/app"

    def test_gitlab_subgroup(self):
        repo = RepoRef.parse("https://gitlab.com/group/sub/proj/-/releases")
        assert repo.forge == "gitlab"
        assert repo.path == "group/sub/proj"

    def test_codeberg_is_gitea(self):
        repo = RepoRef.parse("https://codeberg.org/acme/app.git")
        assert repo.forge == "gitea"
        assert repo.path == "acme/app"

    @pytest.mark.parametrize("value", ["", "https://example.com/acme/app", "just-a-name"])
    def test_not_a_repo(self, value):
        assert RepoRef.parse(value) is None


# ── Forge APIs ──────────────────────────────────────────────────


class TestGitHubReleaseAPI:
    def test_parse_release(self):
        release = parse_release(GH_RELEASE)
        assert release.tag == "v1.0"
        assert len(release.assets) == 1
        assert release.assets[0].size == 1234
        assert release.assets[0].digest == "sha256:" + "ab" * 32

    def test_get_release_by_tag(self):
        http = FakeHttpClient({f"{GH_API}/releases/tags/v1.0": json.dumps(GH_RELEASE)})
        release = GitHubReleaseAPI(http).get_release_by_tag(RepoRef(path="acme/app"), "v1.0")
        assert release.name == "App 1.0"

    def test_missing_tag_is_none(self):
        api = GitHubReleaseAPI(FakeHttpClient())
        assert api.get_release_by_tag(RepoRef(path="acme/app"), "v9") is None

    def test_server_error_raises(self):
        http = FakeHttpClient()
        http.fail(f"{GH_API}/releases/latest", 502)
        with pytest.raises(UpstreamUnavailable):
            GitHubReleaseAPI(http).latest_release(RepoRef(path="acme/app"))

    def test_list_recent(self):
        second = dict(GH_RELEASE, tag_name="v0.9")
        http = FakeHttpClient({f"{GH_API}/releases?per_page=10": json.dumps([GH_RELEASE, second])})
        tags = [r.tag for r in GitHubReleaseAPI(http).list_recent_releases(RepoRef(path="acme/app"))]
        assert tags == ["v1.0", "v0.9"]

    def test_latest(self):
        http = FakeHttpClient({f"{GH_API}/releases/latest": json.dumps(GH_RELEASE)})
        assert GitHubReleaseAPI(http).latest_release(RepoRef(path="acme/app")).tag == "v1.0"


class TestForgeRouter:
    def test_dispatches_to_gitlab(self):
        payload = {
            "tag_name": "v2.0",
            "assets": {"links": [{"name": "proj.zip", "url": "https://gitlab.com/dl/proj.zip"}]},
        }
        http = FakeHttpClient({
            "https://gitlab.com/api/v4/projects/group%2Fproj/releases/v2.0": json.dumps(payload),
        })
        repo = RepoRef.parse("https://gitlab.com/group/proj")

        release = ForgeRouter(http).get_release_by_tag(repo, "v2.0")

        assert release.tag == "v2.0"
        assert release.assets[0].url == "https://gitlab.com/dl/proj.zip"

    def test_gitea_latest_uses_listing(self):
        listing = [
            {"tag_name": "v3.0-rc1", "prerelease": True},
            {"tag_name": "v2.9"},
        ]
        http = FakeHttpClient({
            "https://codeberg.org/api/v1/repos/acme/app/releases?limit=10": json.dumps(listing),
        })
        repo = RepoRef.parse("https://codeberg.org/acme/app")
        assert ForgeRouter(http).latest_release(repo).tag == "v2.9"


# ── Detectors ───────────────────────────────────────────────────


def _entry(**checkver) -> CatalogEntry:
    return CatalogEntry(name="app", version="1.0", checkver=CheckverConfig(**checkver))


class TestJsonPath:
    def test_nested(self):
        data = {"items": [{"tag": "v1"}, {"tag": "v2"}]}
        assert json_path_lookup(data, "$.items[1].tag") == "v2"

    def test_missing(self):
        assert json_path_lookup({"a": 1}, "$.b") is None
        assert json_path_lookup({"a": []}, "$.a[0]") is None


class TestCheckverDetector:
    def test_page_and_regex(self):
        http = FakeHttpClient({"https://app.example/news": "<h1>App 2.4.1 released</h1>"})
        detector = CheckverDetector(http, FakeReleaseAPI())
        raw = detector.detect(_entry(url="https://app.example/news", regex=r"App ([\d.]+) released"))
        assert raw == "2.4.1"

    def test_named_group(self):
        http = FakeHttpClient({"https://app.example/news": "build 11937 ok"})
        detector = CheckverDetector(http, FakeReleaseAPI())
        raw = detector.detect(_entry(url="https://app.example/news", regex=r"build (?P<version>\d+)"))
        assert raw == "11937"

    def test_json_path(self):
        http = FakeHttpClient({"https://app.example/api": json.dumps({"latest": {"version": "3.1"}})})
        detector = CheckverDetector(http, FakeReleaseAPI())
        assert detector.detect(_entry(url="https://app.example/api", jsonpath="$.latest.version")) == "3.1"

    def test_forge_release_tag(self):
        api = FakeReleaseAPI({"acme/app": [Release(tag="v5.0")]})
        detector = CheckverDetector(FakeHttpClient(), api)
        assert detector.detect(_entry(github="https://github.com/acme/app")) == "v5.0"

    def test_unreachable_is_none(self):
        detector = CheckverDetector(FakeHttpClient(), FakeReleaseAPI())
        assert detector.detect(_entry(url="https://app.example/gone", regex="(.*)")) is None

    def test_bad_regex_is_none(self):
        http = FakeHttpClient({"https://app.example/news": "x"})
        detector = CheckverDetector(http, FakeReleaseAPI())
        assert detector.detect(_entry(url="https://app.example/news", regex="([")) is None

    def test_no_checkver(self):
        entry = CatalogEntry(name="app", version="1.0")
        assert CheckverDetector(FakeHttpClient(), FakeReleaseAPI()).detect(entry) is None


class TestCommandDetector:
    def test_missing_command(self):
        detector = CommandDetector("definitely-not-a-real-checker-cmd {name}")
        assert detector.detect(CatalogEntry(name="app", version="1.0")) is None

    @pytest.mark.skipif(not shutil.which("echo"), reason="echo not available")
    def test_output_returned(self):
        detector = CommandDetector("echo {name}: 1.2.3")
        assert detector.detect(CatalogEntry(name="app", version="1.0")) == "app: 1.2.3"


# ── HTTP client ─────────────────────────────────────────────────


class TestHttpClient:
    def test_non_http_scheme_rejected(self):
        with pytest.raises(UpstreamUnavailable, match="unsupported"):
            HttpClient().get_bytes("file:///etc/passwd")

    def test_retries_clamped(self):
        assert HttpClient(retries=5).retries == 1
        assert HttpClient(retries=-1).retries == 0

    def test_token_sent_to_its_host_only(self):
        client = HttpClient(tokens={"api.github.com": "secret"})
        assert client._headers("https://api.github.com/x", None)["Authorization"] == "Bearer secret"
        assert "Authorization" not in client._headers("https://example.com/x", None)

    def test_invalid_json(self):
        http = FakeHttpClient({"https://x/api": "not json"})
        with pytest.raises(UpstreamUnavailable, match="invalid JSON"):
            http.get_json("https://x/api")


# ── Notifier ────────────────────────────────────────────────────


class TestLogNotifier:
    def test_severity_maps_to_level(self, caplog):
        issues = [
            IssueRecord(kind=IssueKind.EXTRACTION_MISS, title="no version", severity=Severity.INFO),
            IssueRecord(kind=IssueKind.ASSET_NOT_FOUND, title="no asset", platform="32bit"),
        ]
        with caplog.at_level(logging.INFO, logger="catalogfix.adapters.notifiers"):
            LogNotifier().report(issues, entry="app")

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.INFO, logging.ERROR]
        assert "app [32bit]: no asset" in caplog.records[1].getMessage()
