"""Validate command implementation.

Checks a profile selection for unknown profiles, cycles, conflicts,
unmet prerequisites, port collisions and resource warnings.
"""

import json
from typing import Annotated

import typer

from profilectl.cli.display import print_report
from profilectl.cli.types import get_catalog, get_settings
from profilectl.core.engine import validate
from profilectl.utils.formatting import console, print_error


def validate_selection(
    ctx: typer.Context,
    profiles: Annotated[
        list[str] | None,
        typer.Argument(help="Profile ids to validate."),
    ] = None,
    template: Annotated[
        str | None,
        typer.Option(
            "--template",
            "-t",
            help="Validate the profiles of a template.",
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
    """Validate a profile selection.

    Exits with code 1 if the selection is invalid.

    Examples:
        profilectl validate kaspa-node kasia-app
        profilectl validate --template full-node
        profilectl validate kaspa-stratum --json
    """
    catalog = get_catalog(ctx)
    selection = list(profiles or [])

    if template is not None:
        found = catalog.template(template)
        if found is None:
            print_error(f"Unknown template: {template}")
            raise typer.Exit(code=1)
        selection = [*found.profiles, *selection]

    report = validate(catalog, selection, get_settings(ctx).memory_high_water_gb)

    if json_output:
        console.print_json(json.dumps(report.to_dict()))
    else:
        print_report(report)

    if not report.valid:
        raise typer.Exit(code=1)
