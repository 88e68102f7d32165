"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from swapwiz import __version__
from swapwiz.cli.commands.wizard import run_wizard
from swapwiz.core.config import ConfigError, load_config
from swapwiz.utils.formatting import err_console, print_error

app = typer.Typer(
    name="swapwiz",
    help="Interactive file-backed swap setup for Linux.",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"swapwiz version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Log debug details.
        quiet: Only log errors.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Config file (default: /etc/swapwiz/config.toml or $SWAPWIZ_CONFIG).",
        ),
    ] = None,
) -> None:
    """swapwiz - Create, enable and persist a swap file, or remove it.

    Runs an interactive wizard; every setting is asked for with a default.
    """
    configure_logging(verbose, quiet)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    run_wizard(config)


if __name__ == "__main__":
    app()
