"""
Treatment plan models: treatment_plan, treatment_plan_phase,
treatment_plan_item, appointment_plan_item
"""
import uuid
from django.db import models


# ============================================================================
# Enums
# ============================================================================

class TreatmentPlanStatus(models.TextChoices):
    """COMPLETED and CANCELLED are terminal"""
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class PhaseStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'


class PlanItemStatus(models.TextChoices):
    """
    Lifecycle of a single procedure in a plan.

    - PENDING / WAITING_FOR_PREREQUISITE: not bookable yet
    - READY_FOR_BOOKING: may be attached to a new appointment
    - SCHEDULED: attached to an upcoming appointment
    - IN_PROGRESS / COMPLETED: follow the servicing appointment
    - SKIPPED: dropped from the plan, counts as done for phase completion
    """
    PENDING = 'pending', 'Pending'
    WAITING_FOR_PREREQUISITE = 'waiting_for_prerequisite', 'Waiting for Prerequisite'
    READY_FOR_BOOKING = 'ready_for_booking', 'Ready for Booking'
    SCHEDULED = 'scheduled', 'Scheduled'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    SKIPPED = 'skipped', 'Skipped'


# ============================================================================
# Plan hierarchy
# ============================================================================

class TreatmentPlan(models.Model):
    """A patient's multi-visit treatment plan."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan_code = models.CharField(max_length=30, unique=True)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.PROTECT,
        related_name='treatment_plans'
    )
    plan_name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=TreatmentPlanStatus.choices,
        default=TreatmentPlanStatus.PENDING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'treatment_plan'
        verbose_name = 'Treatment Plan'
        verbose_name_plural = 'Treatment Plans'
        indexes = [
            models.Index(fields=['patient'], name='idx_plan_patient'),
            models.Index(fields=['status'], name='idx_plan_status'),
        ]

    def __str__(self):
        return f"{self.plan_code} - {self.plan_name}"


class TreatmentPlanPhase(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(
        'TreatmentPlan',
        on_delete=models.CASCADE,
        related_name='phases'
    )
    phase_number = models.PositiveSmallIntegerField()
    phase_name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=PhaseStatus.choices,
        default=PhaseStatus.PENDING
    )
    completion_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'treatment_plan_phase'
        verbose_name = 'Treatment Plan Phase'
        verbose_name_plural = 'Treatment Plan Phases'
        unique_together = [('plan', 'phase_number')]
        ordering = ['plan', 'phase_number']

    def __str__(self):
        return f"Phase {self.phase_number}: {self.phase_name}"


class TreatmentPlanItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phase = models.ForeignKey(
        'TreatmentPlanPhase',
        on_delete=models.CASCADE,
        related_name='items'
    )
    sequence_number = models.PositiveSmallIntegerField()
    item_name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=30,
        choices=PlanItemStatus.choices,
        default=PlanItemStatus.PENDING
    )
    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'treatment_plan_item'
        verbose_name = 'Treatment Plan Item'
        verbose_name_plural = 'Treatment Plan Items'
        indexes = [
            models.Index(fields=['phase', 'status'], name='idx_plan_item_phase_status'),
        ]
        ordering = ['phase', 'sequence_number']

    def __str__(self):
        return f"{self.sequence_number}. {self.item_name} ({self.status})"


class AppointmentPlanItem(models.Model):
    """Which appointment services which plan item."""
    appointment = models.ForeignKey(
        'clinical.Appointment',
        on_delete=models.CASCADE,
        related_name='plan_item_links'
    )
    item = models.ForeignKey(
        'TreatmentPlanItem',
        on_delete=models.CASCADE,
        related_name='appointment_links'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'appointment_plan_item'
        verbose_name = 'Appointment Plan Item'
        verbose_name_plural = 'Appointment Plan Items'
        unique_together = [('appointment', 'item')]

    def __str__(self):
        return f"{self.appointment_id} -> {self.item_id}"
