"""
Clinical models: patient, appointment, appointment_audit_log
"""
import uuid
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string


# ============================================================================
# Enums
# ============================================================================

class AppointmentStatus(models.TextChoices):
    """
    Appointment status with allowed transitions:
    - scheduled -> checked_in | cancelled | no_show
    - checked_in -> in_progress | cancelled
    - in_progress -> completed | cancelled
    - completed, cancelled, no_show are terminal states
    """
    SCHEDULED = 'scheduled', 'Scheduled'
    CHECKED_IN = 'checked_in', 'Checked In'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    NO_SHOW = 'no_show', 'No Show'


class AppointmentActionType(models.TextChoices):
    """
    Audit action types. Only STATUS_CHANGE is written by the lifecycle
    engine; the others belong to booking, delay and reschedule flows.
    """
    CREATE = 'create', 'Create'
    CANCEL = 'cancel', 'Cancel'
    DELAY = 'delay', 'Delay'
    RESCHEDULE_SOURCE = 'reschedule_source', 'Reschedule (source)'
    RESCHEDULE_TARGET = 'reschedule_target', 'Reschedule (target)'
    STATUS_CHANGE = 'status_change', 'Status Change'


class AppointmentReasonCode(models.TextChoices):
    """Why an appointment was cancelled, delayed or moved"""
    PREVIOUS_CASE_OVERRUN = 'previous_case_overrun', 'Previous case overran'
    DOCTOR_UNAVAILABLE = 'doctor_unavailable', 'Doctor unavailable'
    EQUIPMENT_FAILURE = 'equipment_failure', 'Equipment failure'
    PATIENT_REQUEST = 'patient_request', 'Patient request'
    OPERATIONAL_REDIRECT = 'operational_redirect', 'Operational redirect'
    OTHER = 'other', 'Other'


class BookingBlockReason(models.TextChoices):
    """Why a patient may not book new appointments"""
    EXCESSIVE_NO_SHOWS = 'excessive_no_shows', 'Excessive no-shows'


def normalize_choice(choices, value):
    """
    Map user input (any case, surrounding whitespace) onto a choice value.

    Returns None when ``value`` is blank or not one of ``choices``.
    """
    if value is None:
        return None
    candidate = str(value).strip().lower()
    if candidate in choices.values:
        return choices(candidate)
    return None


# ============================================================================
# Patient
# ============================================================================

class Patient(models.Model):
    """
    Patient record plus the no-show risk profile.

    BUSINESS RULE: consecutive_no_shows counts no-shows since the patient
    last turned up. Reaching the threshold blocks new bookings; the block
    is only ever lifted manually by staff.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_code = models.CharField(max_length=20, unique=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    birth_date = models.DateField(blank=True, null=True)

    # Risk profile
    consecutive_no_shows = models.PositiveIntegerField(default=0)
    is_booking_blocked = models.BooleanField(default=False)
    booking_block_reason = models.CharField(
        max_length=30,
        choices=BookingBlockReason.choices,
        blank=True,
        null=True
    )
    booking_block_notes = models.TextField(blank=True, null=True)
    blocked_at = models.DateTimeField(blank=True, null=True)
    blocked_by = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        help_text='Staff email/code that triggered the block, or SYSTEM'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
            models.Index(fields=['is_booking_blocked'], name='idx_patient_blocked'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.patient_code})"


# ============================================================================
# Appointment
# ============================================================================

class AppointmentQuerySet(models.QuerySet):

    def locked_by_code(self, appointment_code):
        """
        Fetch an appointment by code holding a row lock until the
        surrounding transaction ends. Must run inside transaction.atomic().
        """
        return self.select_for_update().get(appointment_code=appointment_code)


def generate_appointment_code(scheduled_start=None):
    day = timezone.localtime(scheduled_start or timezone.now()).strftime('%Y%m%d')
    return f"APT{day}{get_random_string(5, '0123456789ABCDEFGHJKLMNPQRSTUVWXYZ')}"


class Appointment(models.Model):
    """
    A booked visit of a patient with a staff member.

    Appointments are created elsewhere in SCHEDULED status. Their status
    only changes through apps.clinical.services.update_appointment_status.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment_code = models.CharField(max_length=30, unique=True)

    # BUSINESS RULE: Patient is REQUIRED (no appointments without patient)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    employee = models.ForeignKey(
        'authz.Employee',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointments',
        help_text='Primary staff member'
    )
    room = models.ForeignKey(
        'core.Room',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointments'
    )
    scheduled_start = models.DateTimeField()
    scheduled_end = models.DateTimeField()
    actual_start_time = models.DateTimeField(blank=True, null=True)
    actual_end_time = models.DateTimeField(blank=True, null=True)
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED
    )
    notes = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        indexes = [
            models.Index(fields=['patient'], name='idx_appointment_patient'),
            models.Index(fields=['employee'], name='idx_appointment_employee'),
            models.Index(fields=['scheduled_start'], name='idx_appointment_start'),
            models.Index(fields=['status'], name='idx_appointment_status'),
        ]

    def __str__(self):
        return f"{self.appointment_code} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.appointment_code:
            self.appointment_code = generate_appointment_code(self.scheduled_start)
        super().save(*args, **kwargs)


# ============================================================================
# Audit log
# ============================================================================

class AppointmentAuditLog(models.Model):
    """
    Append-only history of appointment changes.

    BUSINESS RULE: entries are immutable. Updating or deleting an existing
    entry raises; the queryset-level bulk delete is not used anywhere.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.ForeignKey(
        'Appointment',
        on_delete=models.PROTECT,
        related_name='audit_logs'
    )
    performed_by = models.ForeignKey(
        'authz.Employee',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='appointment_audit_logs',
        help_text='Employee who made the change (null for system actions)'
    )
    action_type = models.CharField(
        max_length=20,
        choices=AppointmentActionType.choices
    )
    reason_code = models.CharField(
        max_length=30,
        choices=AppointmentReasonCode.choices,
        blank=True,
        null=True
    )
    old_status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        blank=True,
        null=True
    )
    new_status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        blank=True,
        null=True
    )
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'appointment_audit_log'
        verbose_name = 'Appointment Audit Log'
        verbose_name_plural = 'Appointment Audit Logs'
        indexes = [
            models.Index(fields=['appointment', 'created_at'], name='idx_appt_audit_appt_created'),
            models.Index(fields=['performed_by'], name='idx_appt_audit_performer'),
            models.Index(fields=['action_type'], name='idx_appt_audit_action'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        actor = self.performed_by.employee_code if self.performed_by else 'system'
        return f"{self.action_type} {self.old_status}->{self.new_status} by {actor}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Appointment audit log entries are immutable')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError('Appointment audit log entries cannot be deleted')


# ============================================================================
# Audit Helper Functions
# ============================================================================

def record_status_change(appointment, old_status, new_status, actor, reason_code=None, notes=None, at=None):
    """
    Write the audit entry for one status change.

    Args:
        appointment: Appointment that changed
        old_status: Status before the change
        new_status: Status after the change
        actor: StaffActor or SystemActor (SystemActor stores no employee)
        reason_code: AppointmentReasonCode value or None
        notes: Free text supplied with the change
        at: Timestamp of the change (defaults to now)

    Returns:
        AppointmentAuditLog instance
    """
    return AppointmentAuditLog.objects.create(
        appointment=appointment,
        performed_by=actor.employee,
        action_type=AppointmentActionType.STATUS_CHANGE,
        reason_code=reason_code,
        old_status=old_status,
        new_status=new_status,
        notes=notes,
        created_at=at or timezone.now(),
    )
