"""Typer application and CLI entry point for apidocs.

This module wires together the top-level Typer application and registers
the sub-commands (``init``, ``config``, ``parts``, ``versions``, ``apply``,
``export``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands, and
invokes the Typer app. Unhandled exceptions are written to a crash log
under the data directory.

See Also:
    :mod:`apidocs.config`: Profile and global configuration resolution.
    :mod:`apidocs.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from apidocs import __version__
from apidocs.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="apidocs",
    help="Register API documentation on the hosting platform and export it as OpenAPI 3.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

_registered = False


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"apidocs {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print platform requests instead of sending them."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apidocs.output.OutputManager` and the
    ``apidocs`` logger from CLI flags, and stores shared options
    (``profile``, ``dry_run``, ``force``) in ``ctx.obj`` for sub-commands.
    """
    from apidocs.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)
    _configure_logging(verbose=verbose, quiet=quiet, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["dry_run"] = dry_run
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _configure_logging(verbose: bool, quiet: bool, no_color: bool) -> None:
    """Route ``apidocs.*`` log records to stderr through Rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("apidocs")
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger.setLevel(level)

    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=verbose,
    )
    handler.setLevel(level)
    logger.addHandler(handler)


def register_commands() -> None:
    """Attach the sub-commands to :data:`app` (once)."""
    global _registered
    if _registered:
        return

    from apidocs.commands.apply import apply_command
    from apidocs.commands.config import config_app
    from apidocs.commands.export import export_command
    from apidocs.commands.init import init_command
    from apidocs.commands.parts import parts_app
    from apidocs.commands.versions import versions_app

    app.command("init")(init_command)
    app.add_typer(config_app, name="config", help="Configuration management.")
    app.add_typer(parts_app, name="parts", help="Documentation parts.")
    app.add_typer(versions_app, name="versions", help="Documentation versions.")
    app.command("apply")(apply_command)
    app.command("export")(export_command)
    _registered = True


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from apidocs.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``apidocs`` console script.

    Unhandled :class:`~apidocs.exceptions.ApiDocsError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from apidocs.exceptions import ApiDocsError
        from apidocs.output import error

        if isinstance(exc, ApiDocsError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
