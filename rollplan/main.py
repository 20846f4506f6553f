"""
rollplan — CLI entrypoint.

Usage:
    rollplan --help
    rollplan plan packs/ --to 2.3.0.0-2557 --from 2.2.0.0-2041
    rollplan reconcile --to 2.3.0.0-2557 --from 2.2.0.0-2041 --dry-run
    rollplan pack check packs/upgrade-2.3.yml
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from rollplan import __version__
from rollplan.core.models.direction import Direction, UpgradeType
from rollplan.core.observability.logging_config import resolve_level, setup_logging_from_env

ENV_ACTOR = "ROLLPLAN_ACTOR"

_DIRECTIONS = click.Choice(["upgrade", "downgrade"], case_sensitive=False)
_TYPES = click.Choice(["rolling", "non-rolling", "host-ordered"], case_sensitive=False)


def _direction(value: str) -> Direction:
    return Direction(value.upper())


def _upgrade_type(value: str) -> UpgradeType:
    return UpgradeType(value.upper().replace("-", "_"))


def _path(value: str | None) -> Path | None:
    return Path(value) if value else None


@click.group()
@click.version_option(version=__version__, prog_name="rollplan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (dumps the full plan).")
@click.option(
    "--audit-log",
    "audit_log",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append an audit entry for every plan/reconcile run to this NDJSON file.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    audit_log: str | None,
) -> None:
    """rollplan — plan cluster stack upgrades and reconcile configurations."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["audit_path"] = _path(audit_log)

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging_from_env(resolve_level(verbose=verbose, quiet=quiet, debug=debug))


def _common_options(func):
    """Cluster, stacks and version options shared by plan and reconcile."""
    func = click.option(
        "--services", "-s", "services", multiple=True,
        help="Only include these services (repeatable).",
    )(func)
    func = click.option(
        "--direction", "-d", type=_DIRECTIONS, default="upgrade", show_default=True,
        help="Upgrade or downgrade.",
    )(func)
    func = click.option(
        "--from", "from_version", default=None,
        help="Repository version being moved away from.",
    )(func)
    func = click.option(
        "--to", "to_version", required=True, help="Repository version being moved to.",
    )(func)
    func = click.option(
        "--stacks", "stacks_path", type=click.Path(dir_okay=False), default=None,
        help="Path to stacks.yml (default: auto-detect).",
    )(func)
    func = click.option(
        "--cluster", "cluster_path", type=click.Path(dir_okay=False), default=None,
        help="Path to cluster.yml (default: auto-detect).",
    )(func)
    return func


@cli.command()
@click.argument("pack", type=click.Path(exists=True))
@_common_options
@click.option(
    "--type", "-t", "upgrade_type", type=_TYPES, default="rolling", show_default=True,
    help="Orchestration type, used when PACK is a directory of packs.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(
    ctx: click.Context,
    pack: str,
    cluster_path: str | None,
    stacks_path: str | None,
    to_version: str,
    from_version: str | None,
    direction: str,
    services: tuple[str, ...],
    upgrade_type: str,
    as_json: bool,
) -> None:
    """Plan an upgrade or downgrade from an upgrade pack.

    PACK is an upgrade pack file, or a directory holding the packs of the
    cluster's stack (one is selected by target version and --type).

    Examples:

        rollplan plan packs/upgrade-2.3.yml --to 2.3.0.0-2557

        rollplan plan packs/ --to 2.3.0.0-2557 --type non-rolling

        rollplan plan packs/ --direction downgrade --from 2.3.0.0-2557 --to 2.2.0.0-2041
    """
    from rollplan.core.use_cases.plan import plan_upgrade

    result = plan_upgrade(
        pack_path=Path(pack),
        to_version=to_version,
        cluster_path=_path(cluster_path),
        stacks_path=_path(stacks_path),
        from_version=from_version,
        direction=_direction(direction),
        upgrade_type=_upgrade_type(upgrade_type),
        services=list(services) if services else None,
        audit_path=ctx.obj.get("audit_path"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    context = result.context
    assert context is not None
    assert result.pack is not None

    click.secho(
        f"\n📋 {context.direction.text(proper=True)} plan — {context.cluster.name}",
        fg="cyan",
        bold=True,
    )
    click.echo(f"   Pack: {result.pack.name} ({context.type.value})")
    click.echo(f"   {context.source_repository} → {context.target_repository}")
    click.echo(f"   Groups: {len(result.groups)} | Stages: {result.stages_total}")
    click.echo()

    for group in result.groups:
        flags = " [skippable]" if group.skippable else ""
        click.secho(f"   ▸ {group.title or group.name}{flags}", fg="white", bold=True)
        for index, stage in enumerate(group.items, start=1):
            click.echo(f"     {index}. {stage.text}  ({stage.type.value})")
            if ctx.obj.get("verbose"):
                for wrapper in stage.tasks:
                    click.echo(f"        │ {wrapper}")

    notes = result.notes
    if notes.unhealthy_hosts:
        click.echo()
        click.secho("   ⚠️  Unhealthy hosts:", fg="yellow")
        for host in notes.unhealthy_hosts:
            click.echo(f"     • {host}")

    if notes.skipped:
        click.echo()
        click.secho(f"   ⊘ Skipped: {len(notes.skipped)}", fg="yellow")
        if ctx.obj.get("verbose"):
            for service, component, reason in notes.skipped:
                click.echo(f"     • {service}/{component} ({reason})")

    click.echo()


@cli.command()
@_common_options
@click.option(
    "--actor", default=None,
    help=f"User recorded on new configurations (default: ${ENV_ACTOR} or $USER).",
)
@click.option("--dry-run", is_flag=True, help="Reconcile but don't write the cluster file.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reconcile(
    ctx: click.Context,
    cluster_path: str | None,
    stacks_path: str | None,
    to_version: str,
    from_version: str | None,
    direction: str,
    services: tuple[str, ...],
    actor: str | None,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Move the cluster to a repository version and reconcile configurations.

    Examples:

        rollplan reconcile --to 2.3.0.0-2557 --from 2.2.0.0-2041

        rollplan reconcile --direction downgrade --from 2.3.0.0-2557 --to 2.2.0.0-2041 --dry-run
    """
    from rollplan.core.use_cases.reconcile import run_reconcile

    if actor is None:
        actor = os.environ.get(ENV_ACTOR) or os.environ.get("USER") or "rollplan"

    result = run_reconcile(
        to_version=to_version,
        actor=actor,
        cluster_path=_path(cluster_path),
        stacks_path=_path(stacks_path),
        from_version=from_version,
        direction=_direction(direction),
        services=list(services) if services else None,
        dry_run=dry_run,
        audit_path=ctx.obj.get("audit_path"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    context = result.context
    outcome = result.reconcile
    assert context is not None
    assert outcome is not None

    mode_label = "[dry-run] " if dry_run else ""
    click.secho(
        f"\n🔧 {mode_label}{context.direction.text(proper=True)} "
        f"{context.direction.preposition} {context.target_repository}",
        fg="cyan",
        bold=True,
    )
    click.echo(f"   Cluster: {context.cluster.name}")
    click.echo()

    for service, config_types in outcome.merged.items():
        click.secho(f"   ✓ {service} ", fg="green", nl=False)
        click.echo(f"merged {', '.join(config_types)}")
    for service in outcome.reverted:
        click.secho(f"   ↺ {service} ", fg="green", nl=False)
        click.echo("reverted to the latest target stack configurations")
    for service in outcome.unchanged:
        click.secho(f"   = {service} ", fg="white", nl=False)
        click.echo("unchanged (same stack)")

    if result.saved:
        click.echo()
        click.secho(f"   💾 Cluster saved to {result.cluster_path}", fg="cyan")

    click.echo()


@cli.group()
def pack() -> None:
    """Upgrade pack commands."""


@pack.command("check")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def pack_check(path: str, as_json: bool) -> None:
    """Validate an upgrade pack file."""
    from rollplan.core.use_cases.pack_check import check_pack

    result = check_pack(Path(path))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.pack is not None  # guaranteed when valid
        click.secho("✅ Upgrade pack is valid", fg="green", bold=True)
        click.echo(f"   Pack: {result.pack.name}")
        click.echo(f"   Target stack: {result.pack.target_stack}")
        click.echo(f"   Type: {result.pack.type.value}")
        click.echo(f"   Groups: {len(result.pack.groups)}")
    else:
        click.secho("❌ Upgrade pack errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
