"""
Tests for release services — resolver, asset selector, checksum resolver.
"""

import pytest

from catalogfix.adapters.mock import FakeHttpClient, FakeReleaseAPI
from catalogfix.core.models import Release, ReleaseAsset, RepoRef
from catalogfix.core.services.releases import (
    AssetResolver,
    ChecksumResolver,
    find_digest,
    format_digest,
    parse_checksum_lines,
    select_best_asset,
)
from catalogfix.core.services.releases.selector import arch_of, is_auxiliary
from conftest import sha256

REPO = RepoRef(path="acme/app")
DL = "https://example.com/dl"


def asset(name: str, size: int = 0, digest: str | None = None) -> ReleaseAsset:
    return ReleaseAsset(name=name, url=f"{DL}/{name}", size=size, digest=digest)


# ── AssetSelector ───────────────────────────────────────────────


class TestSelectBestAsset:
    """select_best_asset picks deterministically per platform slot."""

    ASSETS = (
        asset("app-1.0-win32.zip"),
        asset("app-1.0-win64.zip"),
        asset("app-1.0-linux-x64.tar.gz"),
        asset("app-1.0-win64.exe"),
        asset("app-1.0-win64.zip.sha256"),
    )

    def test_64bit_prefers_archive(self):
        assert select_best_asset(self.ASSETS, "64bit").name == "app-1.0-win64.zip"

    def test_32bit(self):
        assert select_best_asset(self.ASSETS, "32bit").name == "app-1.0-win32.zip"

    def test_other_os_filtered(self):
        chosen = select_best_asset(self.ASSETS, "64bit", os_family="linux")
        assert chosen.name == "app-1.0-linux-x64.tar.gz"

    def test_arm64_without_marker_is_none(self):
        assert select_best_asset(self.ASSETS, "arm64") is None

    def test_generic_prefers_archive_over_installer(self):
        assets = (asset("app-win-setup.exe"), asset("app-win-portable.zip"))
        assert select_best_asset(assets, "generic").name == "app-win-portable.zip"

    def test_checksum_files_never_selected(self):
        assets = (asset("app.zip.sha256"), asset("SHA256SUMS"))
        assert select_best_asset(assets, "generic") is None

    def test_size_heuristic_for_untagged(self):
        assets = (asset("tool-a.zip", size=10), asset("tool-b.zip", size=20))
        assert select_best_asset(assets, "64bit").name == "tool-b.zip"
        assert select_best_asset(assets, "32bit").name == "tool-a.zip"

    def test_untagged_os_asset_when_no_arch_marker(self):
        assets = (asset("app-win.exe"), asset("app-win.zip"))
        assert select_best_asset(assets, "64bit").name == "app-win.zip"

    def test_ties_broken_by_list_order(self):
        assets = (asset("first-x64.zip"), asset("second-x64.zip"))
        for _ in range(5):
            assert select_best_asset(assets, "64bit").name == "first-x64.zip"

    def test_empty(self):
        assert select_best_asset((), "64bit") is None

    def test_node_style_platform_string_is_64bit(self):
        assert arch_of("app-win32-x64.zip") == {"64bit"}

    def test_auxiliary(self):
        assert is_auxiliary("app-1.0.zip.sig")
        assert is_auxiliary("app-1.0-src.tar.gz")
        assert not is_auxiliary("app-1.0-win64.zip")


# ── ChecksumResolver ────────────────────────────────────────────


HEX = "ab" * 32


class TestChecksumParsing:
    def test_hex_then_name(self):
        assert parse_checksum_lines(f"{HEX}  app.zip\n") == [("app.zip", HEX)]

    def test_binary_marker(self):
        assert parse_checksum_lines(f"{HEX} *app.zip") == [("app.zip", HEX)]

    def test_name_then_hex(self):
        assert parse_checksum_lines(f"app.zip {HEX}") == [("app.zip", HEX)]

    def test_bsd_style(self):
        assert parse_checksum_lines(f"SHA256 (app.zip) = {HEX}") == [("app.zip", HEX)]

    def test_lone_digest(self):
        assert find_digest(HEX, "app.zip", allow_unnamed=True) == HEX
        assert find_digest(HEX, "app.zip") is None

    def test_substring_match(self):
        text = f"{'cd' * 32}  ./dist/other.zip\n{HEX}  ./dist/app.zip\n"
        assert find_digest(text, "app.zip") == HEX

    def test_format_digest(self):
        assert format_digest(HEX.upper()) == HEX
        assert format_digest("a" * 32) == "md5:" + "a" * 32
        assert format_digest("b" * 128, "sha512") == "sha512:" + "b" * 128


class TestChecksumResolver:
    def test_manifest_preferred_over_download(self):
        target = asset("app-1.0-win64.zip")
        manifest = asset("SHA256SUMS")
        http = FakeHttpClient({
            target.url: b"binary",
            manifest.url: f"{HEX}  app-1.0-win64.zip\n",
        })

        digest = ChecksumResolver(http).resolve_checksum([target, manifest], target)

        assert digest == HEX
        assert http.calls_for("DOWNLOAD") == []

    def test_companion_file(self):
        target = asset("app.zip")
        companion = asset("app.zip.sha256")
        http = FakeHttpClient({companion.url: HEX})
        assert ChecksumResolver(http).resolve_checksum([target, companion], target) == HEX

    def test_forge_digest_before_download(self):
        target = asset("app.zip", digest=f"sha256:{HEX}")
        http = FakeHttpClient({target.url: b"binary"})
        assert ChecksumResolver(http).resolve_checksum([target], target) == HEX
        assert http.calls_for("DOWNLOAD") == []

    def test_download_fallback(self):
        target = asset("app.zip")
        http = FakeHttpClient({target.url: b"binary"})
        assert ChecksumResolver(http).resolve_checksum([target], target) == sha256(b"binary")

    def test_manifest_without_entry_falls_through(self):
        target = asset("app.zip")
        manifest = asset("checksums.txt")
        http = FakeHttpClient({
            target.url: b"binary",
            manifest.url: f"{HEX}  other.zip\n",
        })
        digest = ChecksumResolver(http).resolve_checksum([target, manifest], target)
        assert digest == sha256(b"binary")

    def test_nothing_available(self):
        target = asset("app.zip")
        assert ChecksumResolver(FakeHttpClient()).resolve_checksum([target], target) is None

    def test_url_checksum_via_lookup(self):
        url = f"{DL}/app.zip"
        http = FakeHttpClient({url: b"binary", f"{url}.sha256": f"{HEX}  app.zip"})
        assert ChecksumResolver(http).resolve_url_checksum(url, f"{url}.sha256") == HEX
        assert http.calls_for("DOWNLOAD") == []

    def test_url_checksum_lookup_missing(self):
        url = f"{DL}/app.zip"
        http = FakeHttpClient({url: b"binary"})
        digest = ChecksumResolver(http).resolve_url_checksum(url, f"{url}.sha256")
        assert digest == sha256(b"binary")


# ── AssetResolver ───────────────────────────────────────────────


def release(tag: str, name: str = "", prerelease: bool = False) -> Release:
    return Release(tag=tag, name=name, prerelease=prerelease, assets=(asset(f"app-{tag}.zip"),))


class TestAssetResolver:
    def test_exact_tag(self):
        api = FakeReleaseAPI({"acme/app": [release("1.2.0")]})
        found = AssetResolver(api).resolve_release(REPO, "1.2.0")
        assert found.tag == "1.2.0"
        assert found.matched_by == "tag"

    def test_v_prefixed_tag(self):
        api = FakeReleaseAPI({"acme/app": [release("v1.2.0")]})
        found = AssetResolver(api).resolve_release(REPO, "1.2.0")
        assert found.tag == "v1.2.0"
        assert found.matched_by == "v-tag"

    def test_substring_match(self):
        api = FakeReleaseAPI({"acme/app": [release("release-1.2.0")]})
        found = AssetResolver(api).resolve_release(REPO, "1.2.0")
        assert found.tag == "release-1.2.0"
        assert found.matched_by == "substring"

    def test_latest_stable_fallback(self, caplog):
        api = FakeReleaseAPI({"acme/app": [
            release("nightly", prerelease=True),
            release("stable-build"),
        ]})
        with caplog.at_level("WARNING"):
            found = AssetResolver(api).resolve_release(REPO, "9.9.9")
        assert found.tag == "stable-build"
        assert found.matched_by == "latest"
        assert "low confidence" in caplog.text

    def test_unknown_repo(self):
        assert AssetResolver(FakeReleaseAPI()).resolve_release(REPO, "1.0") is None

    def test_api_failure_is_not_found(self):
        api = FakeReleaseAPI({"acme/app": [release("1.0")]})
        api.set_unavailable("acme/app")
        assert AssetResolver(api).resolve_release(REPO, "1.0") is None

    def test_latest_release_skips_prereleases(self):
        api = FakeReleaseAPI({"acme/app": [release("2.0", prerelease=True), release("1.9")]})
        assert AssetResolver(api).latest_release(REPO).tag == "1.9"

    @pytest.mark.parametrize("limit", [1, 3])
    def test_recent_limit_respected(self, limit):
        releases = [release(f"0.{i}") for i in range(5)]
        api = FakeReleaseAPI({"acme/app": releases})
        found = AssetResolver(api, recent_limit=limit).find_assets_by_pattern(REPO, "0.4")
        if limit == 1:
            assert found.tag == "0.0"
            assert found.matched_by == "latest"
        else:
            assert found is not None
