# Recalculate Ratings Management Command
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Avg, Count

from core.models import Rating, User


class Command(BaseCommand):
    help = 'Rebuilds every user\'s average rating and rating count from their ratings.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the command without saving changes to the database.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Batch size for bulk processing.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size < 1:
            raise CommandError('--batch-size must be a positive integer.')

        self.recalculate_users(dry_run, batch_size)

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Recalculation completed successfully.'))

    def recalculate_users(self, dry_run, batch_size):
        self.stdout.write('Recalculating user ratings...')

        stats = {
            row['rated_user']: (row['avg'], row['total'])
            for row in Rating.objects.values('rated_user').annotate(
                avg=Avg('stars'),
                total=Count('id')
            )
        }

        updates = []
        count = 0
        changed = 0

        for user in User.objects.all().order_by('pk').iterator(chunk_size=batch_size):
            raw_avg, total = stats.get(user.pk, (None, 0))
            new_avg = float(raw_avg) if raw_avg is not None else 0.0

            if abs(user.average_rating - new_avg) > 1e-9 or user.rating_count != total:
                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] User {user.id} ({user.email}): '
                        f'Rating {user.average_rating} -> {new_avg}, '
                        f'Count {user.rating_count} -> {total}'
                    )
                user.average_rating = new_avg
                user.rating_count = total
                updates.append(user)
                changed += 1

            if len(updates) >= batch_size:
                if not dry_run:
                    User.objects.bulk_update(updates, ['average_rating', 'rating_count'])
                updates = []

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} users...')

        if updates and not dry_run:
            User.objects.bulk_update(updates, ['average_rating', 'rating_count'])

        self.stdout.write(f'Processed {count} users total, {changed} changed.')
