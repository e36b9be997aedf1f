"""
Acting-staff resolution tests.
"""
import pytest
from django.contrib.auth.models import AnonymousUser

from apps.authz.actors import SYSTEM, StaffActor, resolve_actor
from apps.authz.models import Employee, EmployeeTypeChoices, User


@pytest.mark.django_db
class TestResolveActor:

    def test_employee_user_resolves_to_staff(self, dentist_user):
        actor = resolve_actor(dentist_user)

        assert isinstance(actor, StaffActor)
        assert actor.employee.employee_code == 'EMP001'
        assert actor.label == 'dentist@test.com'

    def test_user_without_employee_is_system(self):
        user = User.objects.create_user(email='root@test.com', password='x')

        assert resolve_actor(user) is SYSTEM

    def test_anonymous_is_system(self):
        assert resolve_actor(AnonymousUser()) is SYSTEM

    def test_none_is_system(self):
        assert resolve_actor(None) is SYSTEM
        assert SYSTEM.label == 'SYSTEM'
        assert SYSTEM.employee is None

    def test_label_falls_back_to_employee_code(self):
        employee = Employee(
            user=User(email=''), employee_code='EMP900',
            full_name='Temp', employee_type=EmployeeTypeChoices.NURSE,
        )

        assert StaffActor(employee).label == 'EMP900'
