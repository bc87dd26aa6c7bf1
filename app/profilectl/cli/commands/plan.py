"""Plan command implementation.

Computes the impact of adding, removing or reconfiguring profiles on
the current installation without changing anything.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from profilectl.cli.display import print_impact, print_report
from profilectl.cli.types import get_catalog, get_settings, get_snapshot, parse_assignments
from profilectl.core.engine import plan_reconfiguration
from profilectl.models.plan import ActionType
from profilectl.models.report import ValidationReport
from profilectl.utils.formatting import console

app = typer.Typer(
    help="Plan profile changes on an existing installation.",
    no_args_is_help=True,
)

ProfilesArg = Annotated[list[str], typer.Argument(help="Target profile ids.")]
LiveFileOption = Annotated[
    Path | None,
    typer.Option(
        "--live-file",
        "-l",
        help="Read live service status from a JSON file instead of Docker.",
    ),
]
RecordOption = Annotated[
    Path | None,
    typer.Option("--record", "-r", help="Declared installation record (JSON)."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for scripting."),
]


def _run_plan(
    ctx: typer.Context,
    action: ActionType,
    profiles: list[str],
    delta: dict[str, str | None],
    live_file: Path | None,
    record: Path | None,
    json_output: bool,
) -> None:
    """Plan an action and print the result.

    Exits with code 1 if the action is blocked.
    """
    catalog = get_catalog(ctx)
    snapshot = get_snapshot(ctx, catalog, live_file, record, quiet=json_output)
    result = plan_reconfiguration(
        catalog,
        action,
        profiles,
        delta,
        snapshot,
        get_settings(ctx).memory_high_water_gb,
    )

    if json_output:
        console.print_json(json.dumps(result.to_dict()))
    elif isinstance(result, ValidationReport):
        print_report(result)
    else:
        print_impact(result)

    if isinstance(result, ValidationReport):
        raise typer.Exit(code=1)


@app.command()
def add(
    ctx: typer.Context,
    profiles: ProfilesArg,
    set_values: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="Configuration to set, as KEY=VALUE."),
    ] = None,
    live_file: LiveFileOption = None,
    record: RecordOption = None,
    json_output: JsonOption = False,
) -> None:
    """Plan adding profiles to the installation."""
    delta: dict[str, str | None] = dict(parse_assignments(set_values or []))
    _run_plan(ctx, ActionType.ADD, profiles, delta, live_file, record, json_output)


@app.command()
def remove(
    ctx: typer.Context,
    profiles: ProfilesArg,
    live_file: LiveFileOption = None,
    record: RecordOption = None,
    json_output: JsonOption = False,
) -> None:
    """Plan removing profiles from the installation.

    Removal is never blocked; broken prerequisites and dependents are
    reported as warnings.
    """
    _run_plan(ctx, ActionType.REMOVE, profiles, {}, live_file, record, json_output)


@app.command()
def configure(
    ctx: typer.Context,
    profiles: ProfilesArg,
    set_values: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="Configuration to set, as KEY=VALUE."),
    ] = None,
    unset: Annotated[
        list[str] | None,
        typer.Option("--unset", "-u", help="Configuration key to remove."),
    ] = None,
    live_file: LiveFileOption = None,
    record: RecordOption = None,
    json_output: JsonOption = False,
) -> None:
    """Plan configuration changes for installed profiles.

    Examples:
        profilectl plan configure kaspa-node --set KASPA_NODE_RPC_PORT=16210
        profilectl plan configure kaspa-node --set KASPA_DATA_DIR=/data/kaspa
        profilectl plan configure kasia-app --unset KASIA_APP_THEME
    """
    delta: dict[str, str | None] = dict(parse_assignments(set_values or []))
    for key in unset or []:
        delta[key] = None
    _run_plan(ctx, ActionType.CONFIGURE, profiles, delta, live_file, record, json_output)
