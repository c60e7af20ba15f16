"""Parts commands -- register and list documentation fragments.

``apidocs parts register`` attaches one fragment to a location;
``apidocs parts list`` shows what the platform currently holds.
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from apidocs.commands.common import cli_errors, open_client, require_profile
from apidocs.output import error, format_response, get_output, print_table, success


parts_app = typer.Typer(no_args_is_help=True)


@parts_app.command("register")
def parts_register(
    ctx: typer.Context,
    location_type: str = typer.Option(..., "--type", "-t", help="Location type, e.g. PATH_PARAMETER."),
    name: Optional[str] = typer.Option(None, "--name", help="Authorizer, model, parameter or header name."),
    path: Optional[str] = typer.Option(None, "--path", help="Resource path, e.g. /todo/{todoId}."),
    method: Optional[str] = typer.Option(None, "--method", help="HTTP method."),
    properties: str = typer.Option(..., "--properties", help="Documentation object as JSON."),
    upsert: bool = typer.Option(
        False, "--upsert", help="Replace an existing fragment at the same location."
    ),
) -> None:
    """Attach a documentation fragment to one location.

    Example::

        apidocs parts register --type AUTHORIZER --name SomeAuthorizer \\
            --properties '{"description": "Checks the Authorization header"}'
    """
    from apidocs.models import LocationKey
    from apidocs.registry import DocumentationRegistry, RegistrationMode

    try:
        payload = json.loads(properties)
    except json.JSONDecodeError as exc:
        error(f"--properties is not valid JSON: {exc}")
        raise typer.Exit(code=2) from None

    with cli_errors():
        key = LocationKey(type=location_type, name=name, path=path, method=method)

    profile = require_profile(ctx)
    mode = RegistrationMode.UPSERT if upsert else RegistrationMode.APPEND
    with open_client(ctx, profile) as client:
        handle = DocumentationRegistry(client, profile.api_id).register(key, payload, mode=mode)

    verb = "Created" if handle.created else "Updated"
    success(f"{verb} documentation part {handle.id} at {key}")


@parts_app.command("list")
def parts_list(
    ctx: typer.Context,
    location_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only this location type."),
) -> None:
    """List the documentation fragments the platform holds."""
    from apidocs.output import OutputFormat
    from apidocs.registry import DocumentationRegistry

    profile = require_profile(ctx)
    with open_client(ctx, profile) as client:
        fragments = list(DocumentationRegistry(client, profile.api_id).list(location_type))

    if get_output().format == OutputFormat.JSON:
        format_response([f.model_dump(mode="json") for f in fragments])
        return

    rows = [
        [
            f.id or "",
            f.location.type.value,
            f.location.method or "",
            f.location.path or "",
            f.location.name or "",
            ", ".join(sorted(f.properties)),
        ]
        for f in fragments
    ]
    print_table(
        ["id", "type", "method", "path", "name", "properties"],
        rows,
        title=f"Documentation parts of {profile.api_id}",
    )
