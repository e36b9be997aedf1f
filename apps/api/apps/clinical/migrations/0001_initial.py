# Generated migration for clinical app: patients, appointments, audit log

import uuid
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


STATUS_CHOICES = [
    ('scheduled', 'Scheduled'),
    ('checked_in', 'Checked In'),
    ('in_progress', 'In Progress'),
    ('completed', 'Completed'),
    ('cancelled', 'Cancelled'),
    ('no_show', 'No Show'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authz', '0001_initial'),
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('patient_code', models.CharField(max_length=20, unique=True)),
                ('first_name', models.CharField(max_length=150)),
                ('last_name', models.CharField(max_length=150)),
                ('email', models.EmailField(blank=True, max_length=255, null=True)),
                ('phone', models.CharField(blank=True, max_length=30, null=True)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('consecutive_no_shows', models.PositiveIntegerField(default=0)),
                ('is_booking_blocked', models.BooleanField(default=False)),
                ('booking_block_reason', models.CharField(blank=True, choices=[('excessive_no_shows', 'Excessive no-shows')], max_length=30, null=True)),
                ('booking_block_notes', models.TextField(blank=True, null=True)),
                ('blocked_at', models.DateTimeField(blank=True, null=True)),
                ('blocked_by', models.CharField(blank=True, help_text='Staff email/code that triggered the block, or SYSTEM', max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
                    models.Index(fields=['is_booking_blocked'], name='idx_patient_blocked'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('appointment_code', models.CharField(max_length=30, unique=True)),
                ('scheduled_start', models.DateTimeField()),
                ('scheduled_end', models.DateTimeField()),
                ('actual_start_time', models.DateTimeField(blank=True, null=True)),
                ('actual_end_time', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='scheduled', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('employee', models.ForeignKey(blank=True, help_text='Primary staff member', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='authz.employee')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='clinical.patient')),
                ('room', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='core.room')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
                'indexes': [
                    models.Index(fields=['patient'], name='idx_appointment_patient'),
                    models.Index(fields=['employee'], name='idx_appointment_employee'),
                    models.Index(fields=['scheduled_start'], name='idx_appointment_start'),
                    models.Index(fields=['status'], name='idx_appointment_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentAuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action_type', models.CharField(choices=[
                    ('create', 'Create'),
                    ('cancel', 'Cancel'),
                    ('delay', 'Delay'),
                    ('reschedule_source', 'Reschedule (source)'),
                    ('reschedule_target', 'Reschedule (target)'),
                    ('status_change', 'Status Change'),
                ], max_length=20)),
                ('reason_code', models.CharField(blank=True, choices=[
                    ('previous_case_overrun', 'Previous case overran'),
                    ('doctor_unavailable', 'Doctor unavailable'),
                    ('equipment_failure', 'Equipment failure'),
                    ('patient_request', 'Patient request'),
                    ('operational_redirect', 'Operational redirect'),
                    ('other', 'Other'),
                ], max_length=30, null=True)),
                ('old_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20, null=True)),
                ('new_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_logs', to='clinical.appointment')),
                ('performed_by', models.ForeignKey(blank=True, help_text='Employee who made the change (null for system actions)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='appointment_audit_logs', to='authz.employee')),
            ],
            options={
                'verbose_name': 'Appointment Audit Log',
                'verbose_name_plural': 'Appointment Audit Logs',
                'db_table': 'appointment_audit_log',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['appointment', 'created_at'], name='idx_appt_audit_appt_created'),
                    models.Index(fields=['performed_by'], name='idx_appt_audit_performer'),
                    models.Index(fields=['action_type'], name='idx_appt_audit_action'),
                ],
            },
        ),
    ]
