"""Apply command -- register a whole documentation manifest in one pass."""

from __future__ import annotations

from typing import Optional

import typer

from apidocs.commands.common import cli_errors, open_client, require_profile
from apidocs.output import error, format_response, get_output, info, success, suggest


def apply_command(
    ctx: typer.Context,
    manifest_path: Optional[str] = typer.Argument(
        None,
        metavar="MANIFEST",
        help="Manifest file (YAML or JSON), or '-' for stdin. Defaults to the profile's manifest.",
    ),
    upsert: bool = typer.Option(
        False, "--upsert", help="Replace fragments already registered at the same location."
    ),
    no_version: bool = typer.Option(
        False, "--no-version", help="Register fragments without recording a version."
    ),
) -> None:
    """Register every fragment of a manifest and record one version.

    The manifest is validated in full before anything is sent.

    Example::

        apidocs apply examples/todo-api.docs.yaml
        apidocs --dry-run apply docs.yaml --upsert
    """
    from apidocs.manifest import apply_manifest, load_manifest
    from apidocs.output import OutputFormat
    from apidocs.registry import DocumentationRegistry, RegistrationMode
    from apidocs.versions import VersionSnapshotManager

    profile = require_profile(ctx)
    source = manifest_path or profile.manifest
    if not source:
        error("No manifest given and the profile has none.")
        suggest("Pass one: apidocs apply <manifest>")
        raise typer.Exit(code=2)

    with cli_errors():
        manifest = load_manifest(source)
    info(f"Applying {len(manifest.fragments)} fragment(s) from {source}")

    mode = RegistrationMode.UPSERT if upsert else None
    with open_client(ctx, profile) as client:
        report = apply_manifest(
            manifest,
            DocumentationRegistry(client, profile.api_id),
            VersionSnapshotManager(client, profile.api_id),
            mode=mode,
            snapshot=not no_version,
        )

    if get_output().format == OutputFormat.JSON:
        format_response(report.model_dump(mode="json"))
        return

    success(f"Registered {report.created} new and {report.updated} updated fragment(s)")
    if report.snapshot is not None:
        success(f"Created documentation version {report.snapshot.version_id}")
        suggest(f"Serve it: apidocs versions promote {report.snapshot.version_id}")
