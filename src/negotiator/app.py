"""Typer application and CLI entry point for negotiator.

This module builds the top-level Typer application and registers the
built-in sub-commands (``probe``, ``credentials``, ``config``,
``schemes``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
and maps :class:`~negotiator.exceptions.NegotiatorError` to its exit
code. Any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`negotiator.config`: Global configuration resolution.
    :mod:`negotiator.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from negotiator import __version__
from negotiator.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="negotiator",
    help="Probe and negotiate HTTP authentication (Basic, Digest, Bearer).",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from negotiator.commands.config import config_app  # noqa: E402
from negotiator.commands.credentials import credentials_app  # noqa: E402
from negotiator.commands.probe import probe_command  # noqa: E402
from negotiator.commands.schemes import schemes_command  # noqa: E402

app.command("probe")(probe_command)
app.command("schemes")(schemes_command)
app.add_typer(credentials_app, name="credentials", help="Manage stored credentials.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"negotiator {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send ``negotiator.*`` log records to stderr through Rich.

    Only warnings are shown by default; ``--verbose`` lowers the level to
    DEBUG so every negotiation trace event is printed.
    """
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("negotiator")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~negotiator.output.OutputManager` from the
    output flags, configures logging, and stores shared options in
    ``ctx.obj`` for sub-commands.
    """
    from negotiator.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose
    ctx.obj["format"] = None if fmt == OutputFormat.AUTO else fmt.value


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from negotiator.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``negotiator`` console script.

    Unhandled :class:`~negotiator.exceptions.NegotiatorError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from negotiator.exceptions import NegotiatorError
        from negotiator.output import error

        if isinstance(exc, NegotiatorError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
