"""
Who performed an action: a staff member or the system itself.

Services never look at ``request.user`` directly; they receive an actor
resolved once at the edge.
"""
from dataclasses import dataclass
from typing import Union

from apps.authz.models import Employee

SYSTEM_LABEL = 'SYSTEM'


@dataclass(frozen=True)
class StaffActor:
    employee: Employee

    @property
    def label(self) -> str:
        user = self.employee.user
        return user.email if user and user.email else self.employee.employee_code


@dataclass(frozen=True)
class SystemActor:
    employee = None

    @property
    def label(self) -> str:
        return SYSTEM_LABEL


SYSTEM = SystemActor()

Actor = Union[StaffActor, SystemActor]


def resolve_actor(user=None) -> Actor:
    """
    Map an authenticated user to the employee acting on their behalf.

    Anonymous users, and accounts without an employee profile (e.g. a
    superuser created from the shell), act as the system.
    """
    if user is None or not getattr(user, 'is_authenticated', False):
        return SYSTEM

    employee = Employee.objects.filter(user_id=user.pk).select_related('user').first()
    if employee is None:
        return SYSTEM

    return StaffActor(employee)
