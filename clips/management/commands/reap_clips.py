"""
Management command to run the retention reaper in the foreground.

Deletes expired clips that no user has favorited. With --recover it first
fails clips left in processing by a crashed worker.
"""
from datetime import timedelta

from django.core.management.base import BaseCommand

from clips.reaper import reap_expired_clips, recover_interrupted_clips


class Command(BaseCommand):
    help = 'Delete expired clips (favorited clips are kept)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting'
        )
        parser.add_argument(
            '--recover',
            action='store_true',
            help='Also mark clips stuck in processing as failed'
        )
        parser.add_argument(
            '--max-age',
            type=int,
            default=None,
            help='Minutes a clip may stay processing before --recover fails it '
                 '(default: CLIPSHARE_ORPHAN_TIMEOUT_MINUTES)'
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        def log(message):
            self.stdout.write(f"  {message}")

        if options['recover'] and not dry_run:
            max_age = timedelta(minutes=options['max_age']) if options['max_age'] else None
            recovered = recover_interrupted_clips(max_age=max_age, logger=log)
            self.stdout.write(self.style.SUCCESS(
                f"✓ Marked {recovered} interrupted clip{'s' if recovered != 1 else ''} as failed"
            ))

        count = reap_expired_clips(logger=log, dry_run=dry_run)

        if dry_run:
            self.stdout.write(self.style.WARNING(
                f"DRY RUN: Would delete {count} clip{'s' if count != 1 else ''}"
            ))
            self.stdout.write("Run without --dry-run to actually delete")
            return

        self.stdout.write(self.style.SUCCESS(
            f"✓ Deleted {count} expired clip{'s' if count != 1 else ''}"
        ))
