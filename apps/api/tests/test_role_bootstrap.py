"""
Tests for the role bootstrap command.
"""
from io import StringIO

import pytest
from django.core.management import call_command

from apps.authz.models import Role, RoleChoices


@pytest.mark.django_db
class TestEnsureRoles:

    def test_creates_every_role(self):
        call_command('ensure_roles', stdout=StringIO())

        assert set(Role.objects.values_list('name', flat=True)) == {c.value for c in RoleChoices}

    def test_idempotent(self):
        Role.objects.create(name=RoleChoices.DENTIST)
        out = StringIO()

        call_command('ensure_roles', stdout=out)
        call_command('ensure_roles', stdout=out)

        assert Role.objects.count() == len(RoleChoices)
        assert 'Role exists: dentist' in out.getvalue()
