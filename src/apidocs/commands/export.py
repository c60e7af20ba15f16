"""Export command -- fetch the OpenAPI 3 document with documentation merged in."""

from __future__ import annotations

from typing import Optional

import typer

from apidocs.commands.common import open_client, require_profile


def export_command(
    ctx: typer.Context,
    api_id: Optional[str] = typer.Option(None, "--api-id", help="Override the profile's API id."),
    stage: Optional[str] = typer.Option(None, "--stage", help="Override the profile's stage."),
) -> None:
    """Print the stage's OpenAPI 3 document (or write it with ``-o``).

    Example::

        apidocs export
        apidocs export --stage dev -o openapi.json
    """
    from apidocs.export import ExportPipeline
    from apidocs.models import ExportConfig
    from apidocs.output import print_document

    profile = require_profile(ctx)
    config = ExportConfig(
        api_id=api_id if api_id is not None else profile.api_id,
        stage=stage if stage is not None else profile.stage,
        region=profile.region,
    )
    with open_client(ctx, profile) as client:
        result = ExportPipeline(client, config).export_oas3()

    print_document(result.body)
