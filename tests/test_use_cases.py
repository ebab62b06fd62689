"""
Tests for the reconcile use cases — batch runs, ledger, version checks.
"""

from pathlib import Path

from catalogfix.core.config.loader import Settings
from catalogfix.core.models import OutcomeStatus, ReconcileTrigger
from catalogfix.core.persistence import ReconcileLedger
from catalogfix.core.use_cases.reconcile import (
    build_driver,
    check_version,
    read_ledger,
    run_reconcile,
)
from conftest import RELEASES, make_entry

NEW_URL = f"{RELEASES}/v1.1.0/app-1.1.0-x64.zip"


class TestRunReconcile:
    def test_outcomes_recorded_in_ledger(self, harness, tmp_path: Path):
        h = harness([make_entry("app"), make_entry("tool")], {"app": "v1.1.0", "tool": "couldn't"})
        h.http.serve(NEW_URL, b"new")
        ledger = ReconcileLedger(tmp_path / "ledger.ndjson")

        result = run_reconcile(
            Settings(root=tmp_path),
            ["app", "tool"],
            trigger=ReconcileTrigger.UPDATE,
            driver=h.driver,
            store=h.store,
            ledger=ledger,
        )

        assert [o.status for o in result.outcomes] == [OutcomeStatus.REPAIRED, OutcomeStatus.FAILED]
        assert result.ok is False
        assert result.count(OutcomeStatus.REPAIRED) == 1

        records = ledger.read_all()
        assert [(r.entry, r.status, r.trigger) for r in records] == [
            ("app", "repaired", "update"),
            ("tool", "failed", "update"),
        ]

    def test_all_entries(self, harness, tmp_path: Path):
        h = harness([make_entry("b"), make_entry("a")], None)
        h.http.serve(f"{RELEASES}/v1.0.0/app-1.0.0-x64.zip", b"old")

        result = run_reconcile(
            Settings(root=tmp_path),
            all_entries=True,
            driver=h.driver,
            store=h.store,
            ledger=ReconcileLedger(tmp_path / "l.ndjson"),
        )

        assert [o.entry for o in result.outcomes] == ["a", "b"]
        assert result.ok

    def test_missing_catalog_dir(self, tmp_path: Path):
        result = run_reconcile(Settings(root=tmp_path, catalog_dir="absent"), ["app"])
        assert result.error.startswith("Catalog directory not found")
        assert result.to_dict() == {"error": result.error}

    def test_nothing_to_do(self, harness, tmp_path: Path):
        h = harness([], None)
        result = run_reconcile(Settings(root=tmp_path), [], driver=h.driver, store=h.store)
        assert "No entries" in result.error

    def test_dry_run_summary(self, harness, tmp_path: Path):
        h = harness([make_entry()], "v1.1.0")
        h.http.serve(NEW_URL, b"new")

        result = run_reconcile(
            Settings(root=tmp_path),
            ["app"],
            dry_run=True,
            driver=h.driver,
            store=h.store,
            ledger=ReconcileLedger(tmp_path / "l.ndjson"),
        )

        data = result.to_dict()
        assert data["dry_run"] is True
        assert data["summary"]["repaired"] == 1
        assert data["outcomes"][0]["written"] is False
        assert h.store.write_count == 0


class TestBuildDriver:
    def test_settings_flow_into_driver(self, tmp_path: Path):
        settings = Settings(root=tmp_path, non_standard_vendors=["mame"], checkver_command="echo {name}")
        driver = build_driver(settings)
        assert driver._vendors == frozenset({"mame"})
        assert type(driver._detector).__name__ == "CommandDetector"


class TestCheckVersion:
    def test_outdated(self, harness):
        h = harness([make_entry()], "release v1.1.0")
        result = check_version(Settings(), "app", driver=h.driver, store=h.store)

        assert result.token == "1.1.0"
        assert result.plausible is True
        assert result.canonical == "1.1.0"
        assert result.outdated is True
        assert h.store.write_count == 0

    def test_rejected(self, harness):
        h = harness([make_entry()], "couldn't")
        result = check_version(Settings(), "app", driver=h.driver, store=h.store)

        assert result.plausible is False
        assert result.canonical is None
        assert result.to_dict()["outdated"] is False

    def test_unknown_entry(self, harness):
        h = harness([], None)
        result = check_version(Settings(), "ghost", driver=h.driver, store=h.store)
        assert "ghost" in result.error


class TestReadLedger:
    def test_recent(self, tmp_path: Path):
        settings = Settings(root=tmp_path)
        assert read_ledger(settings) == []
