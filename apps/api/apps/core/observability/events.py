"""
Domain events logging helpers.

Provides structured event logging for business operations.
"""
from typing import Dict, Any, Optional
from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields: Any
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'appointment_status_changed')
        entity_type: Type of entity (e.g., 'Appointment', 'Patient')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, blocked, failure, etc.)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'appointment_status_changed',
            entity_type='Appointment',
            entity_id=str(appointment.id),
            entity_ids={'appointment_code': appointment.appointment_code},
            from_status='scheduled',
            to_status='checked_in',
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    # Log at appropriate level based on result
    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked', 'rejected']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_appointment_transition(appointment, from_status, to_status, actor, **extra):
    """Log a committed appointment status change."""
    log_domain_event(
        'appointment_status_changed',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={'appointment_code': appointment.appointment_code},
        result='success',
        from_status=from_status,
        to_status=to_status,
        performed_by=actor.label,
        **extra
    )


def log_transition_rejected(appointment_code, requested_status, error):
    """Log a rejected status update (expected outcome, never an error)."""
    log_domain_event(
        'appointment_status_rejected',
        entity_type='Appointment',
        entity_ids={'appointment_code': appointment_code},
        result='rejected',
        requested_status=str(requested_status),
        error_code=error.code,
        details=error.details,
    )


def log_patient_booking_blocked(patient, appointment, consecutive_no_shows, blocked_by):
    """Log an automatic booking block after repeated no-shows."""
    log_domain_event(
        'patient_booking_blocked',
        entity_type='Patient',
        entity_id=str(patient.id),
        entity_ids={
            'patient_code': patient.patient_code,
            'appointment_code': appointment.appointment_code,
        },
        result='warning',
        consecutive_no_shows=consecutive_no_shows,
        blocked_by=blocked_by,
    )


def log_plan_rollup(appointment, rollup):
    """Log phases/plans auto-completed after an appointment was completed."""
    log_domain_event(
        'treatment_plan_rollup',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={'appointment_code': appointment.appointment_code},
        result='success',
        phases_completed=sorted(str(i) for i in rollup.completed_phase_ids),
        plans_completed=sorted(str(i) for i in rollup.completed_plan_ids),
    )
