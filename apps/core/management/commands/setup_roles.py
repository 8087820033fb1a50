"""
Management command for installing or removing the workflow roles.

Usage:
    python manage.py setup_roles
    python manage.py setup_roles --assign alice Editor
    python manage.py setup_roles --remove
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.core.capabilities import ROLE_CAPABILITIES, assign_role, remove_capabilities, sync_roles
from apps.core.models import PendingRevisionsSettings


class Command(BaseCommand):
    help = 'Create role groups with their capabilities and default settings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--remove',
            action='store_true',
            help='Strip the workflow capabilities from every role instead'
        )
        parser.add_argument(
            '--assign',
            nargs=2,
            metavar=('USERNAME', 'ROLE'),
            help=f"Put a user into a role ({', '.join(ROLE_CAPABILITIES)})"
        )

    def handle(self, *args, **options):
        if options['remove']:
            remove_capabilities()
            self.stdout.write(self.style.SUCCESS('Workflow capabilities removed from all roles'))
            return

        sync_roles()
        PendingRevisionsSettings.get_active()
        self.stdout.write(self.style.SUCCESS(
            f"Roles ready: {', '.join(ROLE_CAPABILITIES)}"
        ))

        if options['assign']:
            username, role = options['assign']
            User = get_user_model()
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                raise CommandError(f"User '{username}' does not exist")
            try:
                assign_role(user, role)
            except ValueError as e:
                raise CommandError(str(e))
            self.stdout.write(self.style.SUCCESS(f"{username} is now {role}"))
