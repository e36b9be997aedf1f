# Generated migration for treatment_plans app: plans, phases, items

import uuid
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clinical', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TreatmentPlan',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('plan_code', models.CharField(max_length=30, unique=True)),
                ('plan_name', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[
                    ('pending', 'Pending'),
                    ('in_progress', 'In Progress'),
                    ('completed', 'Completed'),
                    ('cancelled', 'Cancelled'),
                ], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='treatment_plans', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Treatment Plan',
                'verbose_name_plural': 'Treatment Plans',
                'db_table': 'treatment_plan',
                'indexes': [
                    models.Index(fields=['patient'], name='idx_plan_patient'),
                    models.Index(fields=['status'], name='idx_plan_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TreatmentPlanPhase',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('phase_number', models.PositiveSmallIntegerField()),
                ('phase_name', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[
                    ('pending', 'Pending'),
                    ('in_progress', 'In Progress'),
                    ('completed', 'Completed'),
                ], default='pending', max_length=20)),
                ('completion_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='phases', to='treatment_plans.treatmentplan')),
            ],
            options={
                'verbose_name': 'Treatment Plan Phase',
                'verbose_name_plural': 'Treatment Plan Phases',
                'db_table': 'treatment_plan_phase',
                'ordering': ['plan', 'phase_number'],
                'unique_together': {('plan', 'phase_number')},
            },
        ),
        migrations.CreateModel(
            name='TreatmentPlanItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('sequence_number', models.PositiveSmallIntegerField()),
                ('item_name', models.CharField(max_length=255)),
                ('status', models.CharField(choices=[
                    ('pending', 'Pending'),
                    ('waiting_for_prerequisite', 'Waiting for Prerequisite'),
                    ('ready_for_booking', 'Ready for Booking'),
                    ('scheduled', 'Scheduled'),
                    ('in_progress', 'In Progress'),
                    ('completed', 'Completed'),
                    ('skipped', 'Skipped'),
                ], default='pending', max_length=30)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('phase', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='treatment_plans.treatmentplanphase')),
            ],
            options={
                'verbose_name': 'Treatment Plan Item',
                'verbose_name_plural': 'Treatment Plan Items',
                'db_table': 'treatment_plan_item',
                'ordering': ['phase', 'sequence_number'],
                'indexes': [
                    models.Index(fields=['phase', 'status'], name='idx_plan_item_phase_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentPlanItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('appointment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='plan_item_links', to='clinical.appointment')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointment_links', to='treatment_plans.treatmentplanitem')),
            ],
            options={
                'verbose_name': 'Appointment Plan Item',
                'verbose_name_plural': 'Appointment Plan Items',
                'db_table': 'appointment_plan_item',
                'unique_together': {('appointment', 'item')},
            },
        ),
    ]
