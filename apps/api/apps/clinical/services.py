"""
Appointment lifecycle service.

Moves an appointment to a new status and applies every consequence of
the change (audit entry, treatment plan cascade, patient no-show policy)
in a single transaction.
"""
import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.authz.actors import resolve_actor
from apps.clinical.exceptions import (
    AggregationFailure,
    AppointmentNotFound,
    AppointmentStatusError,
    CascadeFailure,
    IllegalTransition,
)
from apps.clinical.models import (
    Appointment,
    AppointmentReasonCode,
    AppointmentStatus,
    normalize_choice,
    record_status_change,
)
from apps.clinical.no_show import apply_no_show_policy
from apps.clinical.transitions import TransitionRules, validate_transition
from apps.core.observability import metrics
from apps.core.observability.events import (
    log_appointment_transition,
    log_plan_rollup,
    log_transition_rejected,
)
from apps.treatment_plans.services import roll_up_completion, sync_items_with_appointment

logger = logging.getLogger(__name__)

# Statuses whose change must be reflected on linked plan items
CASCADE_STATUSES = frozenset({
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})


@metrics.track_duration(metrics.appointment_status_update_duration_seconds)
def update_appointment_status(
    appointment_code: str,
    requested_status,
    reason_code: Optional[str] = None,
    notes: Optional[str] = None,
    user=None,
    clock=None,
) -> Appointment:
    """
    Change the status of an appointment.

    All of the following happen in one transaction, in this order:
    1. Lock the appointment row (concurrent updates of the same code queue)
    2. Validate the transition and its time window
    3. Apply status, actual start/end timestamps and notes
    4. Write the audit entry
    5. Sync linked treatment plan items; roll completion up to phases/plans
    6. Update the patient's no-show counter and booking block

    Args:
        appointment_code: Human readable appointment code
        requested_status: Target AppointmentStatus (value or member)
        reason_code: AppointmentReasonCode, required for cancellations
        notes: Replaces the appointment notes when given
        user: Authenticated user making the change (None for system jobs)
        clock: Callable returning the current aware datetime

    Returns:
        The updated Appointment

    Raises:
        AppointmentNotFound, IllegalTransition, RuleViolation: rejected,
            nothing written
        CascadeFailure: plan items could not be updated, nothing written
    """
    now = (clock or timezone.now)()
    actor = resolve_actor(user)

    try:
        with transaction.atomic():
            try:
                appointment = Appointment.objects.locked_by_code(appointment_code)
            except Appointment.DoesNotExist:
                raise AppointmentNotFound(appointment_code)

            target = normalize_choice(AppointmentStatus, requested_status)
            if target is None:
                raise IllegalTransition(
                    appointment.status,
                    requested_status,
                    message=f'Unknown appointment status: {requested_status}',
                )

            old_status = AppointmentStatus(appointment.status)
            decision = validate_transition(
                old_status,
                target,
                appointment.scheduled_start,
                appointment.scheduled_end,
                now,
                reason_code=reason_code,
                rules=TransitionRules.from_settings(),
            )

            if decision.set_actual_start:
                appointment.actual_start_time = now
            if decision.set_actual_end:
                appointment.actual_end_time = now
            appointment.status = target
            if notes is not None:
                appointment.notes = notes
            appointment.save()

            record_status_change(
                appointment,
                old_status,
                target,
                actor,
                reason_code=_resolve_reason_code(reason_code, appointment_code),
                notes=notes,
                at=now,
            )

            if target in CASCADE_STATUSES:
                item_ids = _sync_plan_items(appointment, target, now)
                if target == AppointmentStatus.COMPLETED and item_ids:
                    _roll_up_plan_completion(appointment, item_ids, now)

            apply_no_show_policy(appointment, target, old_status, actor, now)

    except AppointmentStatusError as e:
        if isinstance(e, CascadeFailure):
            metrics.appointment_status_transitions_total.labels(
                from_status=old_status.value,
                to_status=target.value,
                result='cascade_failure'
            ).inc()
        else:
            metrics.appointment_status_rejections_total.labels(code=e.code).inc()
            log_transition_rejected(appointment_code, requested_status, e)
        raise

    metrics.appointment_status_transitions_total.labels(
        from_status=old_status.value,
        to_status=target.value,
        result='success'
    ).inc()
    log_appointment_transition(appointment, old_status.value, target.value, actor)

    return appointment


def _resolve_reason_code(reason_code, appointment_code):
    if reason_code is None or not str(reason_code).strip():
        return None

    resolved = normalize_choice(AppointmentReasonCode, reason_code)
    if resolved is None:
        logger.warning(
            'Unknown reason code ignored',
            extra={
                'appointment_code': appointment_code,
                'reason_code': str(reason_code),
            }
        )
    return resolved


def _sync_plan_items(appointment, status, now):
    """Failures here abort the whole status update."""
    try:
        return sync_items_with_appointment(appointment.id, status, now)
    except Exception as e:
        logger.error(
            'Failed to sync plan items with appointment status',
            extra={
                'appointment_id': str(appointment.id),
                'appointment_code': appointment.appointment_code,
                'attempted_status': str(status),
                'error': str(e),
            },
            exc_info=True
        )
        raise CascadeFailure(
            f'Failed to update treatment plan items: {e}',
            details={
                'appointment_code': appointment.appointment_code,
                'attempted_status': str(status),
            },
        ) from e


def _roll_up_plan_completion(appointment, item_ids, now):
    """
    Failures here are logged and skipped; the status update still commits.
    The savepoint discards any partial phase/plan writes.
    """
    try:
        with transaction.atomic():
            try:
                rollup = roll_up_completion(item_ids, timezone.localtime(now).date())
            except Exception as e:
                raise AggregationFailure(str(e)) from e
    except AggregationFailure as e:
        metrics.treatment_plan_rollup_failures_total.inc()
        logger.warning(
            'Treatment plan completion rollup skipped',
            extra={
                'appointment_id': str(appointment.id),
                'appointment_code': appointment.appointment_code,
                'error': str(e),
            },
            exc_info=True
        )
        return None

    if rollup.changed:
        log_plan_rollup(appointment, rollup)
    return rollup
