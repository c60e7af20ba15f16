"""Versions commands -- snapshot and promote documentation versions.

A new snapshot starts as ``PROPOSED``; ``apidocs versions promote`` makes the
profile's stage serve it.
"""

from __future__ import annotations

from typing import Optional

import typer

from apidocs.commands.common import open_client, require_profile
from apidocs.output import format_response, get_output, print_table, success, suggest


versions_app = typer.Typer(no_args_is_help=True)


@versions_app.command("create")
def versions_create(
    ctx: typer.Context,
    description: Optional[str] = typer.Option(
        None,
        "--description",
        "-d",
        help="Version description; '{timestamp}' is replaced by the creation time.",
    ),
) -> None:
    """Record a documentation version over the current parts."""
    from apidocs.versions import VersionSnapshotManager

    profile = require_profile(ctx)
    with open_client(ctx, profile) as client:
        snapshot = VersionSnapshotManager(client, profile.api_id).create_snapshot(description)

    success(f"Created documentation version {snapshot.version_id} ({snapshot.status.value})")
    suggest(f"Serve it from {profile.stage}: apidocs versions promote {snapshot.version_id}")


@versions_app.command("list")
def versions_list(ctx: typer.Context) -> None:
    """List documentation versions, oldest first."""
    from apidocs.output import OutputFormat
    from apidocs.versions import VersionSnapshotManager

    profile = require_profile(ctx)
    with open_client(ctx, profile) as client:
        snapshots = VersionSnapshotManager(client, profile.api_id).list_snapshots(profile.stage)

    if get_output().format == OutputFormat.JSON:
        format_response([s.model_dump(mode="json") for s in snapshots])
        return

    rows = [
        [s.version_id, s.created_at.isoformat(), s.status.value, s.description]
        for s in snapshots
    ]
    print_table(
        ["version", "created", "status", "description"],
        rows,
        title=f"Documentation versions of {profile.api_id} ({profile.stage})",
    )


@versions_app.command("promote")
def versions_promote(
    ctx: typer.Context,
    version_id: str = typer.Argument(help="Documentation version to serve."),
    stage: Optional[str] = typer.Option(
        None, "--stage", help="Stage to update (defaults to the profile's stage)."
    ),
) -> None:
    """Make a stage serve a documentation version."""
    from apidocs.versions import VersionSnapshotManager

    profile = require_profile(ctx)
    target = stage or profile.stage
    with open_client(ctx, profile) as client:
        VersionSnapshotManager(client, profile.api_id).promote(version_id, target)

    success(f"Stage {target} now serves documentation version {version_id}")
