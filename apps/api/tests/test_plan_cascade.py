"""
Treatment plan cascade tests.

Appointment status -> linked plan items -> phases -> plan.
"""
from datetime import date, datetime, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.clinical.exceptions import CascadeFailure
from apps.clinical.models import Appointment, AppointmentAuditLog, AppointmentStatus
from apps.clinical.services import update_appointment_status
from apps.treatment_plans.models import (
    PhaseStatus,
    PlanItemStatus,
    TreatmentPlan,
    TreatmentPlanItem,
    TreatmentPlanPhase,
    TreatmentPlanStatus,
)
from apps.treatment_plans.rollup import item_update_for, phase_is_complete, plan_is_complete
from apps.treatment_plans.services import roll_up_completion, sync_items_with_appointment


def at(hour, minute=0, day=10):
    return datetime(2025, 6, day, hour, minute, tzinfo=dt_timezone.utc)


def frozen(moment):
    return lambda: moment


def reload(obj):
    return type(obj).objects.get(pk=obj.pk)


# ============================================================================
# Pure decisions
# ============================================================================

class TestDecisions:

    @pytest.mark.parametrize('appointment_status,item_status,completes', [
        (AppointmentStatus.IN_PROGRESS, PlanItemStatus.IN_PROGRESS, False),
        (AppointmentStatus.COMPLETED, PlanItemStatus.COMPLETED, True),
        (AppointmentStatus.CANCELLED, PlanItemStatus.READY_FOR_BOOKING, False),
        (AppointmentStatus.NO_SHOW, PlanItemStatus.READY_FOR_BOOKING, False),
    ])
    def test_item_mapping(self, appointment_status, item_status, completes):
        update = item_update_for(appointment_status)
        assert update.status == item_status
        assert update.set_completed_at is completes

    @pytest.mark.parametrize('status', [AppointmentStatus.SCHEDULED, AppointmentStatus.CHECKED_IN])
    def test_no_mapping(self, status):
        assert item_update_for(status) is None

    def test_phase_complete_when_all_items_done(self):
        assert phase_is_complete(PhaseStatus.IN_PROGRESS, ['completed', 'skipped', 'completed'])

    def test_phase_not_complete_with_open_item(self):
        assert not phase_is_complete(PhaseStatus.IN_PROGRESS, ['completed', 'ready_for_booking'])

    def test_phase_without_items_stays_open(self):
        assert not phase_is_complete(PhaseStatus.PENDING, [])

    def test_completed_phase_not_completed_again(self):
        assert not phase_is_complete(PhaseStatus.COMPLETED, ['completed'])

    def test_plan_complete_when_all_phases_completed(self):
        assert plan_is_complete(TreatmentPlanStatus.IN_PROGRESS, ['completed', 'completed'])
        assert plan_is_complete(TreatmentPlanStatus.PENDING, ['completed'])

    def test_plan_not_complete_with_open_phase(self):
        assert not plan_is_complete(TreatmentPlanStatus.IN_PROGRESS, ['completed', 'in_progress'])

    @pytest.mark.parametrize('terminal', [TreatmentPlanStatus.COMPLETED, TreatmentPlanStatus.CANCELLED])
    def test_terminal_plan_untouched(self, terminal):
        assert not plan_is_complete(terminal, ['completed'])

    def test_plan_without_phases_stays_open(self):
        assert not plan_is_complete(TreatmentPlanStatus.IN_PROGRESS, [])


# ============================================================================
# Database application
# ============================================================================

@pytest.mark.django_db
class TestSyncItems:

    def test_no_linked_items_is_noop(self, appointment):
        assert sync_items_with_appointment(appointment.id, AppointmentStatus.COMPLETED, at(9, 31)) == []

    def test_updates_only_linked_items(self, appointment, make_plan, link_item):
        _, _, (linked, other) = make_plan([['scheduled', 'scheduled']])
        link_item(appointment, linked)

        updated = sync_items_with_appointment(appointment.id, AppointmentStatus.COMPLETED, at(9, 31))

        assert updated == [linked.id]
        linked, other = reload(linked), reload(other)
        assert linked.status == PlanItemStatus.COMPLETED
        assert linked.completed_at == at(9, 31)
        assert other.status == PlanItemStatus.SCHEDULED
        assert other.completed_at is None


@pytest.mark.django_db
class TestRollUp:

    def test_completes_phase_and_plan(self, make_plan):
        plan, (phase,), items = make_plan([['completed', 'skipped']])

        result = roll_up_completion([items[0].id], date(2025, 6, 10))

        assert result.completed_phase_ids == {phase.id}
        assert result.completed_plan_ids == {plan.id}
        phase = reload(phase)
        assert phase.status == PhaseStatus.COMPLETED
        assert phase.completion_date == date(2025, 6, 10)
        assert reload(plan).status == TreatmentPlanStatus.COMPLETED

    def test_plan_waits_for_other_phases(self, make_plan):
        plan, (phase1, phase2), items = make_plan([['completed'], ['ready_for_booking']])

        result = roll_up_completion([items[0].id], date(2025, 6, 10))

        assert result.completed_phase_ids == {phase1.id}
        assert result.completed_plan_ids == set()
        assert reload(phase2).status == PhaseStatus.IN_PROGRESS
        assert reload(plan).status == TreatmentPlanStatus.IN_PROGRESS

    def test_idempotent(self, make_plan):
        plan, (phase,), items = make_plan([['completed']])

        first = roll_up_completion([items[0].id], date(2025, 6, 10))
        second = roll_up_completion([items[0].id], date(2025, 6, 11))

        assert first.changed
        assert not second.changed
        assert reload(phase).completion_date == date(2025, 6, 10)
        assert reload(plan).status == TreatmentPlanStatus.COMPLETED

    def test_cancelled_plan_not_completed(self, make_plan):
        plan, _, items = make_plan([['completed']], plan_status='cancelled')

        result = roll_up_completion([items[0].id], date(2025, 6, 10))

        assert result.completed_plan_ids == set()
        assert reload(plan).status == TreatmentPlanStatus.CANCELLED


# ============================================================================
# Through the lifecycle service
# ============================================================================

@pytest.mark.django_db
class TestCascadeFromStatusChange:

    def test_last_item_completes_item_phase_and_plan(self, make_appointment, make_plan, link_item):
        """Completing the last open item closes its phase and the plan."""
        appointment = make_appointment(status=AppointmentStatus.IN_PROGRESS)
        plan, (phase1, phase2), items = make_plan(
            [['completed', 'skipped'], ['completed', 'in_progress']]
        )
        TreatmentPlanPhase.objects.filter(pk=phase1.pk).update(status=PhaseStatus.COMPLETED)
        link_item(appointment, items[3])

        update_appointment_status(appointment.appointment_code, AppointmentStatus.COMPLETED, clock=frozen(at(9, 31)))

        item = reload(items[3])
        assert item.status == PlanItemStatus.COMPLETED
        assert item.completed_at == at(9, 31)
        assert reload(phase2).status == PhaseStatus.COMPLETED
        assert reload(phase2).completion_date == date(2025, 6, 10)
        assert reload(plan).status == TreatmentPlanStatus.COMPLETED

    def test_start_marks_item_in_progress(self, make_appointment, make_plan, link_item):
        appointment = make_appointment(status=AppointmentStatus.CHECKED_IN)
        _, _, (item,) = make_plan([['scheduled']])
        link_item(appointment, item)

        update_appointment_status(appointment.appointment_code, AppointmentStatus.IN_PROGRESS, clock=frozen(at(9, 2)))

        assert reload(item).status == PlanItemStatus.IN_PROGRESS

    def test_no_show_returns_item_to_booking_queue(self, appointment, make_plan, link_item):
        _, (phase,), (item,) = make_plan([['scheduled']])
        link_item(appointment, item)

        update_appointment_status(appointment.appointment_code, AppointmentStatus.NO_SHOW, clock=frozen(at(9, 50)))

        assert reload(item).status == PlanItemStatus.READY_FOR_BOOKING
        assert reload(phase).status == PhaseStatus.IN_PROGRESS

    def test_cancellation_returns_item_to_booking_queue(self, appointment, make_plan, link_item):
        _, _, (item,) = make_plan([['scheduled']])
        link_item(appointment, item)

        update_appointment_status(
            appointment.appointment_code, AppointmentStatus.CANCELLED,
            reason_code='DOCTOR_UNAVAILABLE', clock=frozen(at(9, 0, day=8))
        )

        assert reload(item).status == PlanItemStatus.READY_FOR_BOOKING

    def test_check_in_leaves_items_alone(self, appointment, make_plan, link_item):
        _, _, (item,) = make_plan([['scheduled']])
        link_item(appointment, item)

        with patch('apps.clinical.services.sync_items_with_appointment') as sync:
            update_appointment_status(appointment.appointment_code, AppointmentStatus.CHECKED_IN, clock=frozen(at(8, 50)))

        sync.assert_not_called()
        assert reload(item).status == PlanItemStatus.SCHEDULED

    def test_item_sync_failure_rolls_back_everything(self, make_appointment, make_plan, link_item):
        appointment = make_appointment(status=AppointmentStatus.IN_PROGRESS)
        _, _, (item,) = make_plan([['in_progress']])
        link_item(appointment, item)

        with patch(
            'apps.clinical.services.sync_items_with_appointment',
            side_effect=DatabaseError('deadlock detected')
        ), patch('apps.clinical.services.logger') as logger:
            with pytest.raises(CascadeFailure) as exc:
                update_appointment_status(appointment.appointment_code, AppointmentStatus.COMPLETED, clock=frozen(at(9, 31)))

        assert exc.value.code == 'PLAN_ITEM_SYNC_FAILED'
        assert isinstance(exc.value.__cause__, DatabaseError)
        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs['extra']['attempted_status'] == 'completed'

        appointment = Appointment.objects.get(pk=appointment.pk)
        assert appointment.status == AppointmentStatus.IN_PROGRESS
        assert appointment.actual_end_time is None
        assert not AppointmentAuditLog.objects.exists()
        assert reload(item).status == PlanItemStatus.IN_PROGRESS

    def test_rollup_failure_does_not_block_completion(self, make_appointment, make_plan, link_item):
        appointment = make_appointment(status=AppointmentStatus.IN_PROGRESS)
        plan, (phase,), (item,) = make_plan([['in_progress']])
        link_item(appointment, item)

        with patch(
            'apps.clinical.services.roll_up_completion',
            side_effect=RuntimeError('phase table unavailable')
        ), patch('apps.clinical.services.metrics') as metrics:
            update_appointment_status(appointment.appointment_code, AppointmentStatus.COMPLETED, clock=frozen(at(9, 31)))

        metrics.treatment_plan_rollup_failures_total.inc.assert_called_once()
        assert reload(appointment).status == AppointmentStatus.COMPLETED
        assert AppointmentAuditLog.objects.filter(appointment=appointment).count() == 1
        assert reload(item).status == PlanItemStatus.COMPLETED
        assert reload(phase).status == PhaseStatus.IN_PROGRESS
        assert reload(plan).status == TreatmentPlanStatus.IN_PROGRESS

    def test_partial_rollup_writes_discarded_on_failure(self, make_appointment, make_plan, link_item):
        appointment = make_appointment(status=AppointmentStatus.IN_PROGRESS)
        plan, (phase,), (item,) = make_plan([['in_progress']])
        link_item(appointment, item)

        with patch.object(TreatmentPlan, 'save', side_effect=DatabaseError('plan row locked')):
            update_appointment_status(appointment.appointment_code, AppointmentStatus.COMPLETED, clock=frozen(at(9, 31)))

        # Phase completion happened inside the failed rollup and was undone
        assert reload(phase).status == PhaseStatus.IN_PROGRESS
        assert reload(plan).status == TreatmentPlanStatus.IN_PROGRESS
        assert reload(item).status == PlanItemStatus.COMPLETED
        assert reload(appointment).status == AppointmentStatus.COMPLETED

    def test_phases_and_plans_read_fresh(self, make_appointment, make_plan, link_item):
        """Rows changed earlier in the transaction are seen by the rollup."""
        appointment = make_appointment(status=AppointmentStatus.IN_PROGRESS)
        plan, (phase,), (item,) = make_plan([['in_progress']])
        link_item(appointment, item)
        # Stale copies held by the caller must not matter
        stale_phase = TreatmentPlanPhase.objects.get(pk=phase.pk)

        update_appointment_status(appointment.appointment_code, AppointmentStatus.COMPLETED, clock=frozen(at(9, 31)))

        assert stale_phase.status == PhaseStatus.IN_PROGRESS
        assert reload(stale_phase).status == PhaseStatus.COMPLETED
        assert TreatmentPlanItem.objects.filter(status=PlanItemStatus.COMPLETED).count() == 1
