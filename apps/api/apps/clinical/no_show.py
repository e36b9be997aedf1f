"""
Patient no-show policy.

Counts consecutive no-shows and blocks the patient from booking once the
threshold is reached. Turning up resets the count but never lifts a block.
"""
import logging
from dataclasses import dataclass

from django.conf import settings

from apps.clinical.models import AppointmentStatus, BookingBlockReason, Patient
from apps.core.observability import metrics
from apps.core.observability.events import log_patient_booking_blocked

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_THRESHOLD = 3

SHOW_UP_STATUSES = frozenset({
    AppointmentStatus.CHECKED_IN,
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.COMPLETED,
})


@dataclass(frozen=True)
class RiskState:
    consecutive_no_shows: int
    is_booking_blocked: bool
    newly_blocked: bool = False


def block_threshold():
    conf = getattr(settings, 'APPOINTMENT_LIFECYCLE', {})
    return conf.get('NO_SHOW_BLOCK_THRESHOLD', DEFAULT_BLOCK_THRESHOLD)


def next_risk_state(consecutive_no_shows, is_booking_blocked, new_status, old_status, threshold):
    """
    Risk counters after an appointment moved ``old_status -> new_status``.

    Returns None when nothing changes.
    """
    if new_status == old_status:
        return None

    if new_status == AppointmentStatus.NO_SHOW:
        count = consecutive_no_shows + 1
        block = count >= threshold and not is_booking_blocked
        return RiskState(
            consecutive_no_shows=count,
            is_booking_blocked=is_booking_blocked or block,
            newly_blocked=block,
        )

    if new_status in SHOW_UP_STATUSES and consecutive_no_shows > 0:
        return RiskState(consecutive_no_shows=0, is_booking_blocked=is_booking_blocked)

    return None


def apply_no_show_policy(appointment, new_status, old_status, actor, now, threshold=None):
    """
    Update the patient's risk profile after a status change.

    Returns the patient when it was modified, None otherwise.
    """
    if threshold is None:
        threshold = block_threshold()

    patient = Patient.objects.get(pk=appointment.patient_id)
    state = next_risk_state(
        patient.consecutive_no_shows,
        patient.is_booking_blocked,
        new_status,
        old_status,
        threshold,
    )
    if state is None:
        return None

    patient.consecutive_no_shows = state.consecutive_no_shows
    update_fields = ['consecutive_no_shows', 'updated_at']

    if state.newly_blocked:
        patient.is_booking_blocked = True
        patient.booking_block_reason = BookingBlockReason.EXCESSIVE_NO_SHOWS
        patient.booking_block_notes = (
            f'Blocked automatically after {state.consecutive_no_shows} consecutive '
            f'no-shows. Last no-show: appointment {appointment.appointment_code}'
        )
        patient.blocked_at = now
        patient.blocked_by = actor.label
        update_fields += [
            'is_booking_blocked',
            'booking_block_reason',
            'booking_block_notes',
            'blocked_at',
            'blocked_by',
        ]

    patient.save(update_fields=update_fields)

    if state.newly_blocked:
        metrics.patient_booking_blocks_total.labels(
            reason=BookingBlockReason.EXCESSIVE_NO_SHOWS.value
        ).inc()
        log_patient_booking_blocked(
            patient, appointment, state.consecutive_no_shows, actor.label
        )
    elif new_status == AppointmentStatus.NO_SHOW:
        logger.info(
            'Patient no-show recorded',
            extra={
                'patient_id': str(patient.id),
                'appointment_code': appointment.appointment_code,
                'consecutive_no_shows': state.consecutive_no_shows,
            }
        )

    return patient
