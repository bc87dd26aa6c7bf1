"""Shared Rich display functions for reports, states and plans.

Provides the table builders and summary printers used by the validate,
resolve, status and plan commands.
"""

from collections.abc import Iterable

from rich.markup import escape
from rich.table import Table

from profilectl.core.catalog import Catalog
from profilectl.core.reconciler import ReconciliationSnapshot, summarize_states
from profilectl.models.plan import ReconfigurationImpact
from profilectl.models.report import Issue, ResourceRequirements, StartupEntry, ValidationReport
from profilectl.utils.formatting import (
    console,
    create_table,
    format_impact,
    format_state,
    print_error,
    print_success,
    print_warning,
)


def create_profiles_table(catalog: Catalog) -> Table:
    """Create a table listing every catalog profile."""
    table = create_table(f"Profiles ({catalog.name})", "Profile", "Name", "Category", "Requires")
    for profile in catalog:
        relations: list[str] = []
        if profile.dependencies:
            relations.append("needs " + ", ".join(profile.dependencies))
        if profile.prerequisites:
            relations.append("one of " + ", ".join(profile.prerequisites))
        if profile.conflicts:
            relations.append("not with " + ", ".join(profile.conflicts))
        table.add_row(
            f"[profile.id]{profile.id}[/]",
            profile.name,
            f"[muted]{profile.category}[/]",
            f"[muted]{'; '.join(relations) or '-'}[/]",
        )
    return table


def print_issues(issues: Iterable[Issue], *, as_errors: bool) -> None:
    """Print issues as errors or warnings."""
    for issue in issues:
        text = escape(f"[{issue.kind.value}] {issue.message}")
        if as_errors:
            print_error(text)
        else:
            print_warning(text)


def create_requirements_table(requirements: ResourceRequirements) -> Table:
    """Create a table with minimum and recommended resources."""
    table = create_table("Resources", "Resource", "Minimum", "Recommended")
    rows = (
        ("Memory (GB)", requirements.min_memory, requirements.recommended_memory),
        ("CPU (cores)", requirements.min_cpu, requirements.recommended_cpu),
        ("Disk (GB)", requirements.min_disk, requirements.recommended_disk),
    )
    for label, minimum, recommended in rows:
        table.add_row(label, f"{minimum:g}", f"{recommended:g}")
    return table


def print_report(report: ValidationReport) -> None:
    """Print a validation report with its resolved profiles."""
    print_issues(report.errors, as_errors=True)
    print_issues(report.warnings, as_errors=False)
    if not report.valid:
        console.print(f"\n[error]Selection is invalid[/] ({len(report.errors)} errors)")
        return
    print_success("Selection is valid.")
    console.print(f"Profiles: {', '.join(report.resolved_profiles)}")
    console.print(create_requirements_table(report.requirements))


def create_startup_table(entries: list[StartupEntry]) -> Table:
    """Create a table listing services in startup order."""
    table = create_table("Startup Order", "Tier", "Service", "Profile")
    for entry in entries:
        table.add_row(str(entry.startup_order), entry.service, f"[muted]{entry.profile}[/]")
    return table


def create_states_table(snapshot: ReconciliationSnapshot) -> Table:
    """Create a table of reconciled installation states."""
    table = create_table("Installation State", "Profile", "State", "Status", "Services", "Notes")
    for state in snapshot.states.values():
        if state.running_service_count is None:
            services = f"?/{state.total_service_count}"
        else:
            services = f"{state.running_service_count}/{state.total_service_count}"
        notes: list[str] = []
        if state.failed_services:
            notes.append("failed: " + ", ".join(state.failed_services))
        if state.orphaned_services:
            notes.append("running but not installed: " + ", ".join(state.orphaned_services))
        table.add_row(
            f"[profile.id]{state.profile_id}[/]",
            format_state(state.installation_state),
            state.status.value,
            services,
            f"[muted]{'; '.join(notes)}[/]",
        )
    return table


def print_states_summary(snapshot: ReconciliationSnapshot) -> None:
    """Print counts per installation state."""
    summary = summarize_states(snapshot.states)
    parts = [
        f"[state.{key}]{count} {key}[/]"
        for key, count in summary.items()
        if key != "total" and count
    ]
    console.print(f"\nSummary: {', '.join(parts)} ({summary['total']} profiles)")


def print_impact(impact: ReconfigurationImpact) -> None:
    """Print a reconfiguration plan."""
    console.print(
        f"[bold_header]Plan:[/] {impact.action.value} {', '.join(impact.targets)}"
    )
    if impact.diff.has_changes:
        table = create_table("Configuration Changes", "Key", "Change", "Old", "New", "Impact")
        for change in impact.diff.changes:
            table.add_row(
                change.key,
                change.change_type.value,
                f"[muted]{change.old_value if change.old_value is not None else '-'}[/]",
                change.new_value if change.new_value is not None else "-",
                format_impact(change.impact),
            )
        console.print(table)

    services = ", ".join(impact.affected_services) or "none"
    console.print(f"Affected services: {services}")
    if impact.requires_restart:
        console.print(
            f"Restart: [warning]{impact.restart_type.value}[/] "
            f"(~{impact.estimated_downtime_seconds}s downtime)"
        )
    else:
        console.print("Restart: [muted]not required[/]")
    print_issues(impact.warnings, as_errors=False)
