"""
Decisions for propagating an appointment status into its treatment plan.

These functions look only at status values. apps.treatment_plans.services
loads the rows, asks these functions what to do and writes the result.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from apps.clinical.models import AppointmentStatus
from apps.treatment_plans.models import PhaseStatus, PlanItemStatus, TreatmentPlanStatus


@dataclass(frozen=True)
class ItemUpdate:
    status: str
    set_completed_at: bool = False


ITEM_UPDATES = {
    AppointmentStatus.IN_PROGRESS: ItemUpdate(PlanItemStatus.IN_PROGRESS),
    AppointmentStatus.COMPLETED: ItemUpdate(PlanItemStatus.COMPLETED, set_completed_at=True),
    # The procedure did not happen: the item goes back to the booking queue
    AppointmentStatus.CANCELLED: ItemUpdate(PlanItemStatus.READY_FOR_BOOKING),
    AppointmentStatus.NO_SHOW: ItemUpdate(PlanItemStatus.READY_FOR_BOOKING),
}

DONE_ITEM_STATUSES = frozenset({PlanItemStatus.COMPLETED, PlanItemStatus.SKIPPED})
TERMINAL_PLAN_STATUSES = frozenset({TreatmentPlanStatus.COMPLETED, TreatmentPlanStatus.CANCELLED})


def item_update_for(appointment_status) -> Optional[ItemUpdate]:
    """Update for items linked to an appointment that moved to this status."""
    return ITEM_UPDATES.get(appointment_status)


def phase_is_complete(phase_status, item_statuses: Iterable[str]) -> bool:
    """
    True when the phase should be marked COMPLETED now.

    An already completed phase or a phase without items is left alone.
    """
    if phase_status == PhaseStatus.COMPLETED:
        return False
    item_statuses = list(item_statuses)
    return bool(item_statuses) and all(s in DONE_ITEM_STATUSES for s in item_statuses)


def plan_is_complete(plan_status, phase_statuses: Iterable[str]) -> bool:
    """True when every phase is COMPLETED and the plan is still open."""
    if plan_status in TERMINAL_PLAN_STATUSES:
        return False
    phase_statuses = list(phase_statuses)
    return bool(phase_statuses) and all(s == PhaseStatus.COMPLETED for s in phase_statuses)
