"""Status command implementation.

Reconciles the declared selection with live service status and shows
the installation state of every profile.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from profilectl.cli.display import create_states_table, print_states_summary
from profilectl.cli.types import get_catalog, get_snapshot
from profilectl.utils.formatting import console


def show_status(
    ctx: typer.Context,
    live_file: Annotated[
        Path | None,
        typer.Option(
            "--live-file",
            "-l",
            help="Read live service status from a JSON file instead of Docker.",
        ),
    ] = None,
    record: Annotated[
        Path | None,
        typer.Option(
            "--record",
            "-r",
            help="Declared installation record (JSON).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
) -> None:
    """Show the installation state of every profile.

    States:
      installed      Declared and consistent with running services
      partial        Declared, but only some services are running
      error          Declared, and a service is failing
      not-installed  Not declared

    Examples:
        profilectl status
        profilectl status --live-file services.json --record state.json
        profilectl status --json
    """
    catalog = get_catalog(ctx)
    snapshot = get_snapshot(ctx, catalog, live_file, record, quiet=json_output)

    if json_output:
        console.print_json(json.dumps(snapshot.to_dict()))
        return

    console.print(create_states_table(snapshot))
    print_states_summary(snapshot)
