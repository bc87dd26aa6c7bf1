"""Resolve command implementation.

Shows the dependency closure of a selection with its aggregated
requirements and the service startup order.
"""

import json
from typing import Annotated

import typer

from profilectl.cli.display import create_requirements_table, create_startup_table
from profilectl.cli.types import get_catalog
from profilectl.core.resolver import GraphResolver
from profilectl.utils.formatting import console, print_error


def resolve_selection(
    ctx: typer.Context,
    profiles: Annotated[
        list[str],
        typer.Argument(help="Profile ids to resolve."),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
) -> None:
    """Resolve a selection into its full set of profiles.

    Examples:
        profilectl resolve kaspa-explorer-bundle
        profilectl resolve kaspa-node kasia-app --json
    """
    catalog = get_catalog(ctx)
    selection = catalog.migrate(profiles)

    unknown = [pid for pid in selection if pid not in catalog]
    if unknown:
        print_error(f"Unknown profiles: {', '.join(unknown)}")
        raise typer.Exit(code=1)

    resolver = GraphResolver(catalog)
    resolved = resolver.resolve(selection)
    startup = resolver.startup_order(selection)

    if json_output:
        data = {
            "profiles": list(resolved.profiles),
            "ports": list(resolved.ports),
            "requirements": resolved.requirements.to_dict(),
            "startup_order": [
                {"service": e.service, "profile": e.profile, "startup_order": e.startup_order}
                for e in startup
            ],
        }
        console.print_json(json.dumps(data))
        return

    console.print(f"Profiles: {', '.join(resolved.profiles)}")
    console.print(f"Ports: {', '.join(str(p) for p in resolved.ports) or '-'}")
    for shared in resolved.shared_services:
        console.print(f"[muted]Shared service {shared.name}: {', '.join(shared.profiles)}[/]")
    console.print(create_requirements_table(resolved.requirements))
    console.print(create_startup_table(startup))
