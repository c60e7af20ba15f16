"""Helpers shared by the CLI sub-commands.

Resolves the active :class:`~apidocs.models.Profile`, opens a
:class:`~apidocs.platform.PlatformClient` for it, and turns
:class:`~apidocs.exceptions.ApiDocsError` into a clean exit with the
error's exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import typer

from apidocs.exceptions import ApiDocsError
from apidocs.models import Profile
from apidocs.output import error, suggest
from apidocs.platform.client import PlatformClient


def ctx_flag(ctx: typer.Context, name: str) -> bool:
    return bool(ctx.obj.get(name, False)) if ctx.obj else False


def require_profile(ctx: typer.Context) -> Profile:
    """Return the active profile or exit with code 2."""
    from apidocs.config import resolve_config

    profile_name: Optional[str] = ctx.obj.get("profile") if ctx.obj else None
    with cli_errors():
        _, profile = resolve_config(cli_profile=profile_name)
    if profile is None:
        error("No active profile.")
        suggest("Create one: apidocs init --api-id <id> --stage <stage>")
        raise typer.Exit(code=2)
    return profile


def build_client(profile: Profile, dry_run: bool = False) -> PlatformClient:
    return PlatformClient.from_profile(profile, dry_run=dry_run)


@contextmanager
def open_client(ctx: typer.Context, profile: Profile) -> Iterator[PlatformClient]:
    """Open a platform client for *profile*, honouring ``--dry-run``."""
    with cli_errors():
        with build_client(profile, dry_run=ctx_flag(ctx, "dry_run")) as client:
            yield client


@contextmanager
def cli_errors() -> Iterator[None]:
    """Print an :class:`ApiDocsError` and exit with its code."""
    try:
        yield
    except ApiDocsError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
