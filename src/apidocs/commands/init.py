"""Init command -- create a profile for one documented API deployment.

Implements the ``apidocs init`` top-level command: it records the REST API
id, stage and region as a :class:`~apidocs.models.Profile` and writes a
project-local ``apidocs.json`` pinning that profile as the default.
"""

from __future__ import annotations

import json
import re
from typing import Optional

import typer

from apidocs.output import info, success, suggest


def init_command(
    api_id: str = typer.Option(..., "--api-id", help="REST API id on the platform."),
    stage: str = typer.Option(..., "--stage", help="Deployment stage to document."),
    region: str = typer.Option("eu-west-1", "--region", help="Platform region."),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        help="Profile name (defaults to '<api-id>-<stage>').",
    ),
    manifest: Optional[str] = typer.Option(
        None, "--manifest", help="Default documentation manifest for 'apply'."
    ),
    endpoint_url: Optional[str] = typer.Option(
        None, "--endpoint-url", help="Override the platform management endpoint."
    ),
) -> None:
    """Create a profile and make it the project default.

    Example::

        apidocs init --api-id dekq8mivw9 --stage prod
        apidocs init --api-id dekq8mivw9 --stage prod --manifest docs.yaml
    """
    from apidocs.config import profile_exists, project_config_path, save_profile
    from apidocs.models import Profile

    profile_name = name or _slugify(f"{api_id}-{stage}")
    if profile_exists(profile_name):
        info(f'Profile "{profile_name}" already exists and will be overwritten.')

    profile = Profile(
        name=profile_name,
        api_id=api_id,
        stage=stage,
        region=region,
        manifest=manifest,
        endpoint_url=endpoint_url,
    )
    save_profile(profile)

    project_config_path().write_text(
        json.dumps({"default_profile": profile_name}, indent=2) + "\n"
    )

    success(f'Profile "{profile_name}" created.')
    if manifest:
        suggest("Register documentation: apidocs apply")
    else:
        suggest("Register documentation: apidocs apply <manifest>")
    suggest("Fetch the merged document: apidocs export")


def _slugify(text: str) -> str:
    """Convert text to a file-name-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower().strip()).strip("-")
    return slug or "default"
