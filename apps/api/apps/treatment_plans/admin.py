from django.contrib import admin
from .models import TreatmentPlan, TreatmentPlanPhase, TreatmentPlanItem, AppointmentPlanItem


class TreatmentPlanPhaseInline(admin.TabularInline):
    model = TreatmentPlanPhase
    extra = 0
    fields = ['phase_number', 'phase_name', 'status', 'completion_date']


class TreatmentPlanItemInline(admin.TabularInline):
    model = TreatmentPlanItem
    extra = 0
    fields = ['sequence_number', 'item_name', 'status', 'completed_at']


@admin.register(TreatmentPlan)
class TreatmentPlanAdmin(admin.ModelAdmin):
    list_display = ['plan_code', 'plan_name', 'patient', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['plan_code', 'plan_name', 'patient__patient_code']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [TreatmentPlanPhaseInline]


@admin.register(TreatmentPlanPhase)
class TreatmentPlanPhaseAdmin(admin.ModelAdmin):
    list_display = ['plan', 'phase_number', 'phase_name', 'status', 'completion_date']
    list_filter = ['status']
    search_fields = ['plan__plan_code', 'phase_name']
    inlines = [TreatmentPlanItemInline]


@admin.register(AppointmentPlanItem)
class AppointmentPlanItemAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'item', 'created_at']
    search_fields = ['appointment__appointment_code', 'item__item_name']
