"""
Role-based permission base for the clinic API.
"""
from rest_framework import permissions


def user_role_names(user):
    """Role names assigned to ``user`` (empty for anonymous users)."""
    if not user or not user.is_authenticated:
        return set()
    return set(user.user_roles.values_list('role__name', flat=True))


class RoleBasedPermission(permissions.BasePermission):
    """
    Grants access when the user holds at least one allowed role.

    Subclasses set ``read_roles`` (GET, HEAD, OPTIONS) and ``write_roles``
    (every other method).
    """
    read_roles = frozenset()
    write_roles = frozenset()

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        user_roles = user_role_names(request.user)

        if request.method in permissions.SAFE_METHODS:
            return bool(user_roles & (self.read_roles | self.write_roles))

        return bool(user_roles & self.write_roles)

    def has_object_permission(self, request, view, obj):
        return self.has_permission(request, view)
