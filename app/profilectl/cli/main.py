"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from profilectl import __version__
from profilectl.cli.commands import catalog, plan, resolve, status, validate
from profilectl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="profilectl",
    help="Profile dependency resolution and installation-state reconciliation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"profilectl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr.

    Args:
        verbose: Log at DEBUG level instead of WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@app.callback()
def main(
    ctx: typer.Context,
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
    catalog_path: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Catalog file to use instead of the configured one.",
        ),
    ] = None,
    settings_path: Annotated[
        Path | None,
        typer.Option(
            "--settings",
            help="Settings file to use instead of ~/.config/profilectl/settings.toml.",
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
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """profilectl - Plan and check multi-service profile installations.

    Validate profile selections against the catalog, see which profiles
    are actually installed and running, and preview the impact of
    adding, removing or reconfiguring profiles.
    """
    configure_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["catalog_path"] = catalog_path
    ctx.obj["settings_path"] = settings_path


# Register commands
app.command(name="catalog")(catalog.show_catalog)
app.command(name="validate")(validate.validate_selection)
app.command(name="resolve")(resolve.resolve_selection)
app.command(name="status")(status.show_status)
app.add_typer(plan.app, name="plan")


if __name__ == "__main__":
    app()
