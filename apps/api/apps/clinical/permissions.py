"""
Clinical permissions for appointment status endpoints.
"""
from apps.authz.models import RoleChoices
from apps.authz.permissions import RoleBasedPermission


class AppointmentStatusPermission(RoleBasedPermission):
    """
    Changing an appointment status.

    - Admin, Dentist, Nurse, Receptionist: allowed
    - Accountant: No access
    """
    write_roles = frozenset({
        RoleChoices.ADMIN,
        RoleChoices.DENTIST,
        RoleChoices.NURSE,
        RoleChoices.RECEPTIONIST,
    })


class AppointmentAuditLogPermission(RoleBasedPermission):
    """
    Reading an appointment's audit trail (read-only endpoint).

    - Admin, Dentist, Nurse, Receptionist, Accountant: Read
    """
    read_roles = frozenset({
        RoleChoices.ADMIN,
        RoleChoices.DENTIST,
        RoleChoices.NURSE,
        RoleChoices.RECEPTIONIST,
        RoleChoices.ACCOUNTANT,
    })
