"""
CLI commands for version tokens — the pure versioning functions, exposed.

Thin wrappers over ``catalogfix.core.services.versioning``.

Usage::

    catalogfix version extract "app: 2.2.3"
    catalogfix version canonicalize 10_6b --url https://x/app-10.6b.zip
    catalogfix version validate mame0282
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def version() -> None:
    """Version tokens — extract, canonicalize, validate."""


@version.command()
@click.argument("text")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def extract(text: str, as_json: bool) -> None:
    """Pull the version token out of TEXT."""
    from catalogfix.core.services.versioning import extract as extract_token

    token = extract_token(text)

    if as_json:
        data = {"token": token.raw, "kind": token.kind.value} if token else {"token": None}
        click.echo(json.dumps(data, indent=2))
        sys.exit(0 if token else 1)

    if token is None:
        click.secho("✗ No version token found", fg="yellow")
        sys.exit(1)
    click.echo(f"{token.raw}  ({token.kind.value})")


@version.command()
@click.argument("token")
@click.option("--url", "urls", multiple=True, help="Known download URL (repeatable).")
@click.option("--verbatim", is_flag=True, help="Return the token unchanged.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def canonicalize(token: str, urls: tuple[str, ...], verbatim: bool, as_json: bool) -> None:
    """Rewrite TOKEN into its canonical form."""
    from catalogfix.core.services.versioning import canonicalize as canon

    result = canon(token, list(urls), verbatim=verbatim)

    if as_json:
        click.echo(json.dumps({"token": token, "canonical": result}, indent=2))
        return
    click.echo(result)


@version.command()
@click.argument("token")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(token: str, as_json: bool) -> None:
    """Check whether TOKEN looks like a release version."""
    from catalogfix.core.services.versioning import classify, is_plausible

    ok = is_plausible(token)

    if as_json:
        click.echo(json.dumps(
            {"token": token, "plausible": ok, "kind": classify(token).value}, indent=2,
        ))
        sys.exit(0 if ok else 1)

    if ok:
        click.secho(f"✅ {token} is plausible ({classify(token).value})", fg="green")
    else:
        click.secho(f"❌ {token} is not a plausible version", fg="red")
        sys.exit(1)
