"""Catalog command implementation.

Lists the profiles and templates defined by the catalog.
"""

import json
from typing import Annotated, Any

import typer

from profilectl.cli.display import create_profiles_table
from profilectl.cli.types import get_catalog
from profilectl.core.catalog import Catalog
from profilectl.utils.formatting import console, create_table


def _catalog_to_dict(catalog: Catalog) -> dict[str, Any]:
    return {
        "name": catalog.name,
        "profiles": [profile.model_dump(mode="json") for profile in catalog],
        "templates": [template.model_dump(mode="json") for template in catalog.templates],
        "legacy": {
            legacy_id: list(catalog.legacy_targets(legacy_id)) for legacy_id in catalog.legacy_ids
        },
    }


def show_catalog(
    ctx: typer.Context,
    templates: Annotated[
        bool,
        typer.Option(
            "--templates",
            "-t",
            help="List templates instead of profiles.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
) -> None:
    """List the profiles available for installation.

    Examples:
        profilectl catalog                # Profile table
        profilectl catalog --templates    # Preset selections
        profilectl catalog --json         # Full catalog as JSON
    """
    catalog = get_catalog(ctx)

    if json_output:
        console.print_json(json.dumps(_catalog_to_dict(catalog)))
        return

    if templates:
        table = create_table("Templates", "Template", "Name", "Profiles")
        for template in catalog.templates:
            table.add_row(
                f"[profile.id]{template.id}[/]",
                template.name,
                f"[muted]{', '.join(template.profiles)}[/]",
            )
        console.print(table)
        return

    console.print(create_profiles_table(catalog))
