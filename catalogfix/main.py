"""
catalogfix — CLI entrypoint.

Usage:
    catalogfix --help
    catalogfix reconcile 7zip
    catalogfix reconcile --all --dry-run
    catalogfix checkver 7zip
    catalogfix version canonicalize mame0282
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from catalogfix import __version__
from catalogfix.core.observability.logging_config import configure_cli_logging

_STATUS_STYLE = {
    "up_to_date": ("✓", "green"),
    "repaired": ("🔧", "green"),
    "needs_manual_review": ("⚠️ ", "yellow"),
    "failed": ("✗", "red"),
}


def _load_settings(ctx: click.Context):
    """Settings for this invocation; exits on a broken config file."""
    from catalogfix.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="catalogfix")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to catalogfix.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """catalogfix — keep catalog manifests pointing at real downloads."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)


@cli.command()
@click.argument("names", nargs=-1)
@click.option("--all", "all_entries", is_flag=True, help="Reconcile every catalog entry.")
@click.option(
    "--trigger",
    type=click.Choice(["autofix", "update", "install_test"]),
    default="autofix",
    show_default=True,
    help="Entry point recorded on the outcome.",
)
@click.option("--dry-run", is_flag=True, help="Work out repairs but don't write them.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reconcile(
    ctx: click.Context,
    names: tuple[str, ...],
    all_entries: bool,
    trigger: str,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Detect drift in catalog entries and repair them."""
    from catalogfix.core.models.outcome import OutcomeStatus, ReconcileTrigger
    from catalogfix.core.use_cases.reconcile import run_reconcile

    settings = _load_settings(ctx)
    result = run_reconcile(
        settings,
        names,
        all_entries=all_entries,
        trigger=ReconcileTrigger(trigger),
        dry_run=dry_run,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        label = " (dry run)" if dry_run else ""
        click.secho(f"\n🔍 Reconcile{label}: {len(result.outcomes)} entr(y/ies)", fg="cyan", bold=True)

    for outcome in result.outcomes:
        icon, color = _STATUS_STYLE.get(outcome.status.value, ("•", "white"))
        version = outcome.current_version
        if outcome.detected_version and outcome.detected_version != version:
            version = f"{version} → {outcome.detected_version}"
        click.secho(f"   {icon} {outcome.entry} ", fg=color, nl=False)
        click.echo(f"{outcome.status.value}  {version}")
        for repair in outcome.repaired:
            click.echo(f"       • {repair.platform}: {repair.new_url} ({repair.method})")
        for issue in outcome.issues:
            where = f" [{issue.platform}]" if issue.platform else ""
            click.echo(f"       ! {issue.kind.value}{where}: {issue.title}")

    if not quiet:
        summary = ", ".join(
            f"{result.count(s)} {s.value}" for s in OutcomeStatus if result.count(s)
        )
        click.echo(f"\n   {summary}\n")

    if not result.ok:
        sys.exit(1)


@cli.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def checkver(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show the latest upstream version of an entry (no repair)."""
    from catalogfix.core.use_cases.reconcile import check_version

    settings = _load_settings(ctx)
    result = check_version(settings, name)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n📦 {name} {result.current_version}", fg="cyan", bold=True)
    if result.token is None:
        click.secho("   No version found in detector output", fg="yellow")
    elif not result.plausible:
        click.secho(f"   ✗ Rejected: '{result.token}' is not a plausible version", fg="red")
    elif result.outdated:
        click.secho(f"   ⬆ {result.current_version} → {result.canonical}", fg="yellow")
    else:
        click.secho(f"   ✓ Up to date ({result.canonical})", fg="green")
    click.echo()


@cli.command()
@click.option("-n", "count", type=int, default=20, show_default=True, help="Records to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def ledger(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent reconciliation records."""
    from catalogfix.core.use_cases.reconcile import read_ledger

    settings = _load_settings(ctx)
    records = read_ledger(settings, count)

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.echo("No reconciliation records yet.")
        return

    click.secho(f"\n📜 Last {len(records)} reconciliation(s)\n", fg="cyan", bold=True)
    for record in records:
        icon, color = _STATUS_STYLE.get(record.status, ("•", "white"))
        flags = " (dry run)" if record.dry_run else ""
        click.secho(f"   {icon} {record.entry} ", fg=color, nl=False)
        click.echo(f"{record.status} [{record.trigger}] {record.timestamp}{flags}")
        for issue in record.issues:
            click.echo(f"       ! {issue.kind.value}: {issue.title}")
    click.echo()


# ── Sub-groups ──────────────────────────────────────────────────

from catalogfix.ui.cli.version import version  # noqa: E402

cli.add_command(version)


if __name__ == "__main__":
    cli()
