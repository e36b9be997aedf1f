"""
Clinical serializers for the appointment status endpoints.
"""
from rest_framework import serializers
from apps.clinical.models import (
    Appointment,
    AppointmentAuditLog,
    AppointmentStatus,
    normalize_choice,
)


class AppointmentStatusUpdateSerializer(serializers.Serializer):
    """
    Request body of PATCH /appointments/{code}/status.

    status and reason_code are case-insensitive ("CHECKED_IN" and
    "checked_in" are the same). Reason codes are checked by the service,
    which also decides whether one is required.
    """
    status = serializers.CharField()
    reason_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_status(self, value):
        status = normalize_choice(AppointmentStatus, value)
        if status is None:
            raise serializers.ValidationError(
                f'Invalid status "{value}". '
                f'Expected one of: {", ".join(s.upper() for s in AppointmentStatus.values)}'
            )
        return status


class AppointmentStatusSerializer(serializers.ModelSerializer):
    """Appointment state after a status change (read-only)"""
    patient_code = serializers.CharField(source='patient.patient_code', read_only=True)
    employee_code = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id',
            'appointment_code',
            'patient_code',
            'employee_code',
            'status',
            'scheduled_start',
            'scheduled_end',
            'actual_start_time',
            'actual_end_time',
            'notes',
            'updated_at',
        ]
        read_only_fields = fields

    def get_employee_code(self, obj):
        if obj.employee:
            return obj.employee.employee_code
        return None


class AppointmentAuditLogSerializer(serializers.ModelSerializer):
    performed_by = serializers.SerializerMethodField()

    class Meta:
        model = AppointmentAuditLog
        fields = [
            'id',
            'action_type',
            'old_status',
            'new_status',
            'reason_code',
            'notes',
            'performed_by',
            'created_at',
        ]
        read_only_fields = fields

    def get_performed_by(self, obj):
        """Employee code, or SYSTEM for automatic changes"""
        if obj.performed_by:
            return obj.performed_by.employee_code
        return 'SYSTEM'
