"""
Treatment plan cascade.

Applies appointment status changes to linked plan items, then rolls
completion up to phases and plans. Both functions expect to run inside
the caller's transaction.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Set

from apps.core.observability import metrics
from apps.treatment_plans.models import (
    AppointmentPlanItem,
    PhaseStatus,
    TreatmentPlan,
    TreatmentPlanItem,
    TreatmentPlanPhase,
    TreatmentPlanStatus,
)
from apps.treatment_plans.rollup import item_update_for, phase_is_complete, plan_is_complete

logger = logging.getLogger(__name__)


@dataclass
class RollupResult:
    completed_phase_ids: Set = field(default_factory=set)
    completed_plan_ids: Set = field(default_factory=set)

    @property
    def changed(self):
        return bool(self.completed_phase_ids or self.completed_plan_ids)


def linked_item_ids(appointment_id) -> List:
    return list(
        AppointmentPlanItem.objects
        .filter(appointment_id=appointment_id)
        .values_list('item_id', flat=True)
    )


def sync_items_with_appointment(appointment_id, appointment_status, now) -> List:
    """
    Move the plan items serviced by an appointment to the status that
    matches the appointment.

    Returns the ids of the updated items. An appointment with no linked
    items, or a status with no item mapping, updates nothing.
    """
    update = item_update_for(appointment_status)
    if update is None:
        return []

    item_ids = linked_item_ids(appointment_id)
    if not item_ids:
        logger.debug(
            'No plan items linked to appointment',
            extra={'appointment_id': str(appointment_id)}
        )
        return []

    items = list(TreatmentPlanItem.objects.filter(id__in=item_ids))
    for item in items:
        item.status = update.status
        update_fields = ['status', 'updated_at']
        if update.set_completed_at:
            item.completed_at = now
            update_fields.append('completed_at')
        item.save(update_fields=update_fields)

    metrics.treatment_plan_item_sync_total.labels(
        appointment_status=str(appointment_status),
        result='updated'
    ).inc(len(items))

    logger.info(
        'Plan items synced with appointment',
        extra={
            'appointment_id': str(appointment_id),
            'appointment_status': str(appointment_status),
            'item_status': str(update.status),
            'item_count': len(items),
        }
    )

    return [item.id for item in items]


def roll_up_completion(item_ids, today) -> RollupResult:
    """
    Complete every phase whose items are all done, then every plan whose
    phases are all completed.

    Phases and plans are re-read from the database so the decision sees
    the item updates made earlier in the transaction. Running it twice
    changes nothing the second time.
    """
    result = RollupResult()

    phase_ids = set(
        TreatmentPlanItem.objects
        .filter(id__in=item_ids)
        .values_list('phase_id', flat=True)
    )

    plan_ids = set()
    for phase in TreatmentPlanPhase.objects.filter(id__in=phase_ids):
        plan_ids.add(phase.plan_id)
        item_statuses = phase.items.values_list('status', flat=True)
        if phase_is_complete(phase.status, item_statuses):
            phase.status = PhaseStatus.COMPLETED
            phase.completion_date = today
            phase.save(update_fields=['status', 'completion_date', 'updated_at'])
            result.completed_phase_ids.add(phase.id)
            metrics.treatment_plan_autocomplete_total.labels(level='phase').inc()

    for plan in TreatmentPlan.objects.filter(id__in=plan_ids):
        phase_statuses = plan.phases.values_list('status', flat=True)
        if plan_is_complete(plan.status, phase_statuses):
            plan.status = TreatmentPlanStatus.COMPLETED
            plan.save(update_fields=['status', 'updated_at'])
            result.completed_plan_ids.add(plan.id)
            metrics.treatment_plan_autocomplete_total.labels(level='plan').inc()

    return result
