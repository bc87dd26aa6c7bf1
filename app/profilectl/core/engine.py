"""Public entry points of the reconciliation engine.

Each function is a pure function of its explicit arguments: the catalog
is passed in, nothing is read from disk or from the container runtime,
and nothing is cached between calls. Invalid input is reported in the
returned result, never raised.
"""

from collections.abc import Iterable, Mapping

from profilectl.core.catalog import Catalog
from profilectl.core.planner import ReconfigurationPlanner
from profilectl.core.reconciler import ReconciliationSnapshot, StateReconciler
from profilectl.core.validation import ValidationReporter
from profilectl.models.plan import ActionType, ReconfigurationImpact
from profilectl.models.report import ValidationReport
from profilectl.models.state import DeclaredRecord, LiveSnapshot, ProfileState


def validate(
    catalog: Catalog,
    selection: Iterable[str],
    memory_high_water_gb: float | None = None,
) -> ValidationReport:
    """Validate a profile selection.

    Args:
        catalog: Profile catalog.
        selection: Requested profile ids.
        memory_high_water_gb: Overrides the catalog's memory warning threshold.

    Returns:
        ValidationReport for the selection.
    """
    return ValidationReporter(catalog, memory_high_water_gb).validate(selection)


def reconcile(
    catalog: Catalog,
    live: LiveSnapshot | None,
    record: DeclaredRecord | None,
) -> dict[str, ProfileState]:
    """Reconcile declared and live state into per-profile states.

    Args:
        catalog: Profile catalog.
        live: Live service snapshot; None or unavailable means unknown.
        record: Declared record; None for a fresh system.

    Returns:
        Mapping of profile id to ProfileState, in catalog order.
    """
    return StateReconciler(catalog).reconcile(live, record)


def plan_reconfiguration(
    catalog: Catalog,
    action: ActionType | str,
    target_ids: Iterable[str],
    config_delta: Mapping[str, str | None] | None,
    current_state: ReconciliationSnapshot,
    memory_high_water_gb: float | None = None,
) -> ReconfigurationImpact | ValidationReport:
    """Plan an add, remove or configure action.

    Args:
        catalog: Profile catalog.
        action: 'add', 'remove' or 'configure'.
        target_ids: Target profile ids.
        config_delta: Proposed configuration changes; None values remove keys.
        current_state: Reconciliation snapshot of the installation.
        memory_high_water_gb: Overrides the catalog's memory warning threshold.

    Returns:
        ReconfigurationImpact, or a ValidationReport with blocking errors.
    """
    planner = ReconfigurationPlanner(catalog, memory_high_water_gb)
    return planner.plan(action, target_ids, current_state, config_delta)
