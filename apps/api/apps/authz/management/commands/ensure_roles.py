"""
Management command to ensure the clinic roles exist.

Usage:
    python manage.py ensure_roles

This command is idempotent and safe to run multiple times.
"""
from django.core.management.base import BaseCommand

from apps.authz.models import Role, RoleChoices


class Command(BaseCommand):
    help = 'Create any missing clinic roles (admin, dentist, nurse, receptionist, accountant)'

    def handle(self, *args, **options):
        for role_choice in RoleChoices:
            role, created = Role.objects.get_or_create(name=role_choice.value)
            if created:
                self.stdout.write(self.style.SUCCESS(f'Created role: {role.name}'))
            else:
                self.stdout.write(f'Role exists: {role.name}')
