"""
Management command for deleting old rejected revisions.

Usage:
    python manage.py cleanup_revisions
    python manage.py cleanup_revisions --days 7
"""

from django.core.management.base import BaseCommand, CommandError

from apps.revisions.tasks import cleanup_old_revisions


class Command(BaseCommand):
    help = 'Delete rejected revisions older than the retention period'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Retention period in days (default: revision_retention_days setting)'
        )

    def handle(self, *args, **options):
        days = options['days']
        if days is not None and days < 1:
            raise CommandError('--days must be at least 1')

        # Explicit runs ignore the auto cleanup switch
        result = cleanup_old_revisions(days=days, force=True)
        self.stdout.write(self.style.SUCCESS(
            f"Deleted {result['deleted']} rejected revision(s) older than {result['retention_days']} days"
        ))
