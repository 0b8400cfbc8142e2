# Purge Notifications Management Command
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.models import Notification


class Command(BaseCommand):
    help = 'Deletes notifications older than the retention window.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Retention window in days (defaults to NOTIFICATION_RETENTION_DAYS).',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report how many notifications would be deleted without deleting them.',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days is None:
            days = settings.NOTIFICATION_RETENTION_DAYS
        if days < 0:
            raise CommandError('--days cannot be negative.')

        cutoff = timezone.now() - timedelta(days=days)
        expired = Notification.objects.filter(created_at__lt=cutoff)

        if options['dry_run']:
            self.stdout.write(
                self.style.SUCCESS(f'[DRY-RUN] {expired.count()} notification(s) older than {days} days.')
            )
            return

        deleted, _details = expired.delete()
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} notification(s) older than {days} days.')
        )
