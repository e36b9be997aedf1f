"""
Appointment status state machine and time-window rules.

Pure functions only: no database access, ``now`` is always passed in.
"""
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType

from django.conf import settings
from django.utils import timezone

from apps.clinical.exceptions import IllegalTransition, RuleViolation
from apps.clinical.models import AppointmentStatus


ALLOWED_TRANSITIONS = MappingProxyType({
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CHECKED_IN: frozenset({
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.IN_PROGRESS: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
})

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


@dataclass(frozen=True)
class TransitionRules:
    """Time windows enforced on top of the state machine."""
    check_in_opens_before: timedelta = timedelta(minutes=30)
    check_in_closes_after: timedelta = timedelta(minutes=45)
    cancellation_notice: timedelta = timedelta(hours=24)
    completion_grace: timedelta = timedelta(hours=2)

    @classmethod
    def from_settings(cls):
        conf = getattr(settings, 'APPOINTMENT_LIFECYCLE', {})
        defaults = cls()
        return cls(
            check_in_opens_before=_minutes(conf, 'CHECK_IN_OPENS_MINUTES_BEFORE', defaults.check_in_opens_before),
            check_in_closes_after=_minutes(conf, 'CHECK_IN_CLOSES_MINUTES_AFTER', defaults.check_in_closes_after),
            cancellation_notice=_hours(conf, 'CANCELLATION_NOTICE_HOURS', defaults.cancellation_notice),
            completion_grace=_hours(conf, 'COMPLETION_GRACE_HOURS', defaults.completion_grace),
        )


def _minutes(conf, key, default):
    return timedelta(minutes=conf[key]) if key in conf else default


def _hours(conf, key, default):
    return timedelta(hours=conf[key]) if key in conf else default


DEFAULT_RULES = TransitionRules()


@dataclass(frozen=True)
class TransitionDecision:
    """Timestamp side effects the caller must apply."""
    set_actual_start: bool = False
    set_actual_end: bool = False


def allowed_targets(current):
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_terminal(status):
    return status in TERMINAL_STATUSES


def validate_transition(
    current,
    requested,
    scheduled_start,
    scheduled_end,
    now,
    reason_code=None,
    rules=DEFAULT_RULES,
):
    """
    Decide whether ``current -> requested`` may happen at ``now``.

    Returns a TransitionDecision, or raises IllegalTransition when the edge
    does not exist and RuleViolation when a time-window rule fails. Checks
    run in a fixed order so the first failing rule is the one reported.
    """
    current = AppointmentStatus(current)
    requested = AppointmentStatus(requested)

    if current == requested:
        raise IllegalTransition(
            current, requested, allowed_targets(current),
            message=f'Appointment is already in status {current}',
        )

    allowed = allowed_targets(current)
    if requested not in allowed:
        raise IllegalTransition(current, requested, allowed)

    # Cancellation is the only change allowed ahead of the appointment day
    if requested != AppointmentStatus.CANCELLED:
        _require_appointment_day(requested, scheduled_start, now)

    if requested == AppointmentStatus.CANCELLED:
        _check_cancellation(scheduled_start, now, reason_code, rules)
    elif requested == AppointmentStatus.CHECKED_IN:
        _check_check_in_window(scheduled_start, now, rules)
    elif requested == AppointmentStatus.IN_PROGRESS:
        if now < scheduled_start:
            raise RuleViolation(
                'start_before_scheduled',
                'Treatment cannot start before the scheduled start time',
                details=_window(scheduled_start=scheduled_start, now=now),
            )
    elif requested == AppointmentStatus.COMPLETED:
        latest = scheduled_end + rules.completion_grace
        if now > latest:
            raise RuleViolation(
                'completion_too_late',
                f'Appointment can only be completed up to '
                f'{_format_delta(rules.completion_grace)} after the scheduled end',
                details=_window(scheduled_end=scheduled_end, latest_allowed=latest, now=now),
            )
    elif requested == AppointmentStatus.NO_SHOW:
        if now < scheduled_start:
            raise RuleViolation(
                'no_show_before_start',
                'Cannot mark as no-show before the scheduled start time',
                details=_window(scheduled_start=scheduled_start, now=now),
            )

    return TransitionDecision(
        set_actual_start=requested == AppointmentStatus.IN_PROGRESS,
        set_actual_end=requested == AppointmentStatus.COMPLETED,
    )


def _require_appointment_day(requested, scheduled_start, now):
    appointment_day = timezone.localtime(scheduled_start).date()
    today = timezone.localtime(now).date()
    if appointment_day != today:
        raise RuleViolation(
            'not_appointment_day',
            f'Status {requested} can only be set on the appointment day '
            f'({appointment_day.isoformat()})',
            details={
                'appointment_date': appointment_day.isoformat(),
                'today': today.isoformat(),
            },
        )


def _check_cancellation(scheduled_start, now, reason_code, rules):
    if reason_code is None or not str(reason_code).strip():
        raise RuleViolation(
            'reason_code_required',
            'A reason code is required to cancel an appointment',
        )

    deadline = scheduled_start - rules.cancellation_notice
    if now > deadline:
        raise RuleViolation(
            'late_cancellation',
            f'Appointments must be cancelled at least '
            f'{_format_delta(rules.cancellation_notice)} in advance',
            details=_window(scheduled_start=scheduled_start, deadline=deadline, now=now),
        )


def _check_check_in_window(scheduled_start, now, rules):
    opens = scheduled_start - rules.check_in_opens_before
    closes = scheduled_start + rules.check_in_closes_after

    if now < opens:
        raise RuleViolation(
            'check_in_too_early',
            f'Check-in opens {_format_delta(rules.check_in_opens_before)} '
            f'before the scheduled start',
            details=_window(opens_at=opens, closes_at=closes, now=now),
        )

    if now > closes:
        minutes_late = int((now - scheduled_start).total_seconds() // 60)
        raise RuleViolation(
            'check_in_too_late',
            f'Patient is {minutes_late} minutes late; check-in closed '
            f'{_format_delta(rules.check_in_closes_after)} after the scheduled '
            f'start. Mark the appointment as NO_SHOW instead',
            details={
                **_window(opens_at=opens, closes_at=closes, now=now),
                'minutes_late': minutes_late,
                'suggested_status': AppointmentStatus.NO_SHOW.value,
            },
        )


def _window(**moments):
    return {key: value.isoformat() for key, value in moments.items()}


def _format_delta(delta):
    minutes = int(delta.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f'{hours} hour' if hours == 1 else f'{hours} hours'
    return f'{minutes} minutes'
