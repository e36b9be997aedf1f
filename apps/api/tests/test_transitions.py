"""
Appointment state machine and time-window rules.

Pure function tests: no database, ``now`` always passed explicitly.
"""
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.test import override_settings

from apps.clinical.exceptions import IllegalTransition, RuleViolation
from apps.clinical.models import AppointmentStatus as S
from apps.clinical.transitions import (
    ALLOWED_TRANSITIONS,
    DEFAULT_RULES,
    TERMINAL_STATUSES,
    TransitionDecision,
    TransitionRules,
    validate_transition,
)

START = datetime(2025, 6, 10, 9, 0, tzinfo=dt_timezone.utc)
END = START + timedelta(minutes=30)


def at(hour, minute=0, day=10):
    return datetime(2025, 6, day, hour, minute, tzinfo=dt_timezone.utc)


def check(current, requested, now, reason_code=None, rules=DEFAULT_RULES):
    return validate_transition(current, requested, START, END, now, reason_code=reason_code, rules=rules)


# ============================================================================
# State machine
# ============================================================================

class TestStateMachine:

    def test_table_edges(self):
        assert ALLOWED_TRANSITIONS[S.SCHEDULED] == {S.CHECKED_IN, S.CANCELLED, S.NO_SHOW}
        assert ALLOWED_TRANSITIONS[S.CHECKED_IN] == {S.IN_PROGRESS, S.CANCELLED}
        assert ALLOWED_TRANSITIONS[S.IN_PROGRESS] == {S.COMPLETED, S.CANCELLED}
        assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELLED, S.NO_SHOW}

    def test_table_is_immutable(self):
        with pytest.raises(TypeError):
            ALLOWED_TRANSITIONS[S.COMPLETED] = frozenset({S.SCHEDULED})

    def test_scheduled_cannot_jump_to_completed(self):
        with pytest.raises(IllegalTransition) as exc:
            check(S.SCHEDULED, S.COMPLETED, at(9, 10))

        assert exc.value.details['current_status'] == 'scheduled'
        assert exc.value.details['allowed_statuses'] == ['cancelled', 'checked_in', 'no_show']

    def test_scheduled_cannot_jump_to_in_progress(self):
        with pytest.raises(IllegalTransition):
            check(S.SCHEDULED, S.IN_PROGRESS, at(9, 5))

    @pytest.mark.parametrize('terminal', [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
    @pytest.mark.parametrize('requested', list(S))
    def test_terminal_statuses_reject_everything(self, terminal, requested):
        with pytest.raises(IllegalTransition) as exc:
            check(terminal, requested, at(9, 5))

        assert exc.value.details['allowed_statuses'] == []

    def test_self_transition_rejected_before_other_rules(self):
        # Wrong day as well: the self-transition message wins
        with pytest.raises(IllegalTransition) as exc:
            check(S.CHECKED_IN, S.CHECKED_IN, at(9, 0, day=12))

        assert 'already in status' in exc.value.message

    def test_structural_check_runs_before_date_rule(self):
        with pytest.raises(IllegalTransition):
            check(S.CHECKED_IN, S.NO_SHOW, at(9, 5, day=12))

    def test_accepts_raw_status_values(self):
        decision = check('checked_in', 'in_progress', at(9, 5))
        assert decision.set_actual_start is True


# ============================================================================
# Appointment-day rule
# ============================================================================

class TestAppointmentDay:

    @pytest.mark.parametrize('current,requested', [
        (S.SCHEDULED, S.CHECKED_IN),
        (S.SCHEDULED, S.NO_SHOW),
        (S.CHECKED_IN, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.COMPLETED),
    ])
    def test_rejected_on_other_day(self, current, requested):
        with pytest.raises(RuleViolation) as exc:
            check(current, requested, at(9, 5, day=11))

        assert exc.value.rule == 'not_appointment_day'
        assert exc.value.code == 'NOT_APPOINTMENT_DAY'
        assert exc.value.details == {'appointment_date': '2025-06-10', 'today': '2025-06-11'}

    @override_settings(TIME_ZONE='America/New_York')
    def test_uses_clinic_local_date(self):
        # 2025-06-10 19:00 and 21:00 in New York, different days in UTC
        late_start = datetime(2025, 6, 10, 23, 0, tzinfo=dt_timezone.utc)
        decision = validate_transition(
            S.SCHEDULED, S.NO_SHOW,
            late_start, late_start + timedelta(minutes=30),
            datetime(2025, 6, 11, 1, 0, tzinfo=dt_timezone.utc),
        )
        assert decision == TransitionDecision()


# ============================================================================
# Cancellation
# ============================================================================

class TestCancellation:

    def test_reason_code_required(self):
        # Day before, no reason code
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.CANCELLED, at(8, 0, day=9))

        assert exc.value.rule == 'reason_code_required'
        assert exc.value.http_status == 400

    def test_blank_reason_code_counts_as_missing(self):
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.CANCELLED, at(8, 0, day=1), reason_code='   ')

        assert exc.value.rule == 'reason_code_required'

    def test_late_cancellation(self):
        # 30 minutes before start
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.CANCELLED, at(8, 30), reason_code='PATIENT_REQUEST')

        assert exc.value.rule == 'late_cancellation'
        assert exc.value.http_status == 409
        assert exc.value.details['deadline'] == '2025-06-09T09:00:00+00:00'

    def test_exactly_at_notice_deadline_is_allowed(self):
        decision = check(S.SCHEDULED, S.CANCELLED, at(9, 0, day=9), reason_code='PATIENT_REQUEST')
        assert decision == TransitionDecision()

    def test_cancellation_allowed_days_ahead(self):
        check(S.SCHEDULED, S.CANCELLED, at(12, 0, day=1), reason_code='OTHER')

    def test_in_progress_cancellation_is_late(self):
        with pytest.raises(RuleViolation) as exc:
            check(S.IN_PROGRESS, S.CANCELLED, at(9, 10), reason_code='EQUIPMENT_FAILURE')

        assert exc.value.rule == 'late_cancellation'


# ============================================================================
# Check-in window
# ============================================================================

class TestCheckIn:

    def test_too_early(self):
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.CHECKED_IN, at(8, 29))

        assert exc.value.rule == 'check_in_too_early'
        assert exc.value.details['opens_at'] == '2025-06-10T08:30:00+00:00'

    def test_too_late_suggests_no_show(self):
        # 55 minutes after start
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.CHECKED_IN, at(9, 55))

        assert exc.value.rule == 'check_in_too_late'
        assert exc.value.details['minutes_late'] == 55
        assert exc.value.details['suggested_status'] == 'no_show'
        assert 'NO_SHOW' in exc.value.message

    @pytest.mark.parametrize('now', [at(8, 30), at(8, 45), at(9, 0), at(9, 45)])
    def test_window_bounds_inclusive(self, now):
        decision = check(S.SCHEDULED, S.CHECKED_IN, now)
        assert decision == TransitionDecision(set_actual_start=False, set_actual_end=False)


# ============================================================================
# Start, completion, no-show
# ============================================================================

class TestTreatmentTimes:

    def test_start_before_scheduled(self):
        with pytest.raises(RuleViolation) as exc:
            check(S.CHECKED_IN, S.IN_PROGRESS, at(8, 59))

        assert exc.value.rule == 'start_before_scheduled'

    def test_start_sets_actual_start(self):
        assert check(S.CHECKED_IN, S.IN_PROGRESS, at(9, 5)) == TransitionDecision(set_actual_start=True)

    def test_completion_grace(self):
        assert check(S.IN_PROGRESS, S.COMPLETED, at(11, 30)) == TransitionDecision(set_actual_end=True)

        with pytest.raises(RuleViolation) as exc:
            check(S.IN_PROGRESS, S.COMPLETED, at(11, 31))

        assert exc.value.rule == 'completion_too_late'

    def test_no_show_before_start(self):
        with pytest.raises(RuleViolation) as exc:
            check(S.SCHEDULED, S.NO_SHOW, at(8, 59))

        assert exc.value.rule == 'no_show_before_start'

    def test_no_show_after_start(self):
        assert check(S.SCHEDULED, S.NO_SHOW, at(9, 50)) == TransitionDecision()


# ============================================================================
# Configurable windows
# ============================================================================

class TestRulesFromSettings:

    @override_settings(APPOINTMENT_LIFECYCLE={
        'CHECK_IN_OPENS_MINUTES_BEFORE': 60,
        'CHECK_IN_CLOSES_MINUTES_AFTER': 10,
        'CANCELLATION_NOTICE_HOURS': 48,
        'COMPLETION_GRACE_HOURS': 1,
    })
    def test_reads_windows_from_settings(self):
        rules = TransitionRules.from_settings()

        assert rules.check_in_opens_before == timedelta(minutes=60)
        assert rules.check_in_closes_after == timedelta(minutes=10)
        assert rules.cancellation_notice == timedelta(hours=48)
        assert rules.completion_grace == timedelta(hours=1)

        check(S.SCHEDULED, S.CHECKED_IN, at(8, 0), rules=rules)
        with pytest.raises(RuleViolation):
            check(S.SCHEDULED, S.CHECKED_IN, at(9, 11), rules=rules)

    @override_settings(APPOINTMENT_LIFECYCLE={})
    def test_missing_keys_fall_back_to_defaults(self):
        assert TransitionRules.from_settings() == DEFAULT_RULES
