"""Config commands -- view and modify configuration.

Provides the ``apidocs config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~apidocs.models.GlobalConfig`) and for inspecting profiles.
"""

from __future__ import annotations

import typer

from apidocs.output import error, format_response, info, print_table, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the global configuration."""
    from apidocs.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'output.format')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the current value (bool or str)
    and the result is validated before saving.

    Example::

        apidocs config set default_profile dekq8mivw9-prod
        apidocs config set output.format json
    """
    from apidocs.config import load_global_config, save_global_config
    from apidocs.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    if isinstance(target[final_key], bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    else:
        coerced = value
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the global configuration to defaults (asks unless ``--force``)."""
    from apidocs.config import save_global_config
    from apidocs.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        if not typer.confirm("Reset all config to defaults?"):
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


@config_app.command("profiles")
def config_profiles() -> None:
    """List saved profiles."""
    from apidocs.config import list_profiles, load_profile

    rows = []
    for name in list_profiles():
        profile = load_profile(name)
        rows.append([profile.name, profile.api_id, profile.stage, profile.region])
    print_table(["name", "api_id", "stage", "region"], rows, title="Profiles")
