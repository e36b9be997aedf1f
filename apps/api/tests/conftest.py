"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Authenticated API clients by role
- Staff, patients, appointments and treatment plans
- Fixed clocks for time-window rules
"""
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from rest_framework.test import APIClient

from apps.authz.models import User, Role, UserRole, Employee, EmployeeTypeChoices, RoleChoices
from apps.clinical.models import Patient, Appointment, AppointmentStatus
from apps.core.models import Room
from apps.treatment_plans.models import (
    AppointmentPlanItem,
    TreatmentPlan,
    TreatmentPlanItem,
    TreatmentPlanPhase,
)

# 2025-06-10 09:00-09:30 UTC (tests run with TIME_ZONE = 'UTC')
APPOINTMENT_START = datetime(2025, 6, 10, 9, 0, tzinfo=dt_timezone.utc)
APPOINTMENT_END = APPOINTMENT_START + timedelta(minutes=30)


def at(*args):
    """Aware UTC datetime: at(2025, 6, 10, 9, 5)"""
    return datetime(*args, tzinfo=dt_timezone.utc)


@pytest.fixture
def clock():
    """
    Frozen clock factory: clock(2025, 6, 10, 9, 5) returns a callable that
    always answers that UTC moment.
    """
    def _clock(*args):
        moment = at(*args)
        return lambda: moment
    return _clock


# ============================================================================
# Staff
# ============================================================================

def create_staff_user(email, role_name, employee_code=None, employee_type=EmployeeTypeChoices.DENTIST):
    """
    Create a user with one role. An Employee profile is attached when
    ``employee_code`` is given.
    """
    user = User.objects.create_user(
        email=email,
        password='testpass123',
        is_active=True
    )
    role, _ = Role.objects.get_or_create(name=role_name)
    UserRole.objects.create(user=user, role=role)

    if employee_code:
        Employee.objects.create(
            user=user,
            employee_code=employee_code,
            full_name=f'Test {role_name.title()}',
            employee_type=employee_type,
        )
    return user


@pytest.fixture
def dentist_user(db):
    return create_staff_user('dentist@test.com', RoleChoices.DENTIST, employee_code='EMP001')


@pytest.fixture
def receptionist_user(db):
    return create_staff_user(
        'reception@test.com',
        RoleChoices.RECEPTIONIST,
        employee_code='EMP002',
        employee_type=EmployeeTypeChoices.RECEPTIONIST,
    )


@pytest.fixture
def employee(dentist_user):
    return dentist_user.employee


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_client(db):
    """
    Authenticated API client with Admin role and no employee profile.
    Changes made through it are recorded as system actions.
    """
    user = create_staff_user('admin@test.com', RoleChoices.ADMIN)
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def receptionist_client(receptionist_user):
    """Front desk: check-in, cancellations, no-shows."""
    client = APIClient()
    client.force_authenticate(user=receptionist_user)
    return client


@pytest.fixture
def dentist_client(dentist_user):
    client = APIClient()
    client.force_authenticate(user=dentist_user)
    return client


@pytest.fixture
def accountant_client(db):
    """Accountant: may read audit trails but not change appointments."""
    user = create_staff_user('accountant@test.com', RoleChoices.ACCOUNTANT)
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# Clinical
# ============================================================================

@pytest.fixture
def room(db):
    return Room.objects.create(room_code='R1', room_name='Chair 1')


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        patient_code='PAT0001',
        first_name='John',
        last_name='Doe',
        email='john.doe@test.com',
    )


@pytest.fixture
def make_appointment(db, patient, employee, room):
    """
    Factory for appointments in any status (bypassing the lifecycle
    service, which is what is under test).
    """
    counter = {'n': 0}

    def _make(status=AppointmentStatus.SCHEDULED, start=APPOINTMENT_START, duration=timedelta(minutes=30),
              patient=patient, code=None):
        counter['n'] += 1
        return Appointment.objects.create(
            appointment_code=code or f'APT20250610T{counter["n"]:03d}',
            patient=patient,
            employee=employee,
            room=room,
            scheduled_start=start,
            scheduled_end=start + duration,
            status=status,
        )

    return _make


@pytest.fixture
def appointment(make_appointment):
    """SCHEDULED appointment on 2025-06-10 09:00-09:30."""
    return make_appointment(code='APT20250610A0001')


# ============================================================================
# Treatment plans
# ============================================================================

@pytest.fixture
def make_plan(db, patient):
    """
    Factory for a plan with one phase per entry in ``phases``; each entry
    is a list of item statuses.

    Returns (plan, phases, items) where items is a flat list.
    """
    def _make(phases, plan_status='in_progress', phase_status='in_progress', code='TP-0001'):
        plan = TreatmentPlan.objects.create(
            plan_code=code,
            patient=patient,
            plan_name='Full mouth rehabilitation',
            status=plan_status,
        )
        created_phases, items = [], []
        for number, item_statuses in enumerate(phases, start=1):
            phase = TreatmentPlanPhase.objects.create(
                plan=plan,
                phase_number=number,
                phase_name=f'Phase {number}',
                status=phase_status,
            )
            created_phases.append(phase)
            for seq, item_status in enumerate(item_statuses, start=1):
                items.append(TreatmentPlanItem.objects.create(
                    phase=phase,
                    sequence_number=seq,
                    item_name=f'Procedure {number}.{seq}',
                    status=item_status,
                ))
        return plan, created_phases, items

    return _make


@pytest.fixture
def link_item():
    def _link(appointment, item):
        return AppointmentPlanItem.objects.create(appointment=appointment, item=item)
    return _link
