from django.contrib import admin
from .models import Patient, Appointment, AppointmentAuditLog


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['patient_code', 'first_name', 'last_name', 'consecutive_no_shows', 'is_booking_blocked', 'created_at']
    list_filter = ['is_booking_blocked', 'booking_block_reason']
    search_fields = ['patient_code', 'first_name', 'last_name', 'email', 'phone']
    readonly_fields = ['id', 'blocked_at', 'blocked_by', 'created_at', 'updated_at']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['appointment_code', 'patient', 'employee', 'room', 'scheduled_start', 'status']
    list_filter = ['status', 'scheduled_start']
    search_fields = ['appointment_code', 'patient__patient_code', 'patient__last_name']
    # Status and actual times change only through the status endpoint
    readonly_fields = ['id', 'status', 'actual_start_time', 'actual_end_time', 'created_at', 'updated_at']
    autocomplete_fields = ['patient']
    date_hierarchy = 'scheduled_start'


@admin.register(AppointmentAuditLog)
class AppointmentAuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'appointment', 'action_type', 'old_status', 'new_status', 'reason_code', 'performed_by']
    list_filter = ['action_type', 'new_status', 'created_at']
    search_fields = ['appointment__appointment_code', 'performed_by__employee_code']
    readonly_fields = [
        'id', 'appointment', 'performed_by', 'action_type', 'reason_code',
        'old_status', 'new_status', 'notes', 'created_at',
    ]

    def has_add_permission(self, request):
        # Audit logs should not be manually created
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        # Audit logs should not be deleted
        return False
