"""
Management command to submit a share link.

Runs the same pipeline as the web API. With --wait it processes in the
foreground instead of queueing on Huey, which is handy for debugging.
"""

import json

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from clips.operations import submit_clip


class Command(BaseCommand):
    help = 'Submit a short-video link for processing'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='Share link to submit')
        parser.add_argument('--user', required=True, help='Username of the submitting user')
        parser.add_argument('--message', default='', help='Short note shown with the clip')
        parser.add_argument(
            '--wait',
            action='store_true',
            help='Process in the foreground instead of enqueuing a background task',
        )
        parser.add_argument('--verbose', action='store_true', help='Verbose output')
        parser.add_argument('--json', action='store_true', help='JSON output')

    def handle(self, *args, **options):
        verbose = options['verbose']
        json_output = options['json']

        User = get_user_model()
        try:
            owner = User.objects.get(username=options['user'])
        except User.DoesNotExist:
            raise CommandError(f"User not found: {options['user']}")

        def log(message):
            if verbose and not json_output:
                self.stdout.write(message)

        try:
            clip = submit_clip(
                owner,
                options['url'],
                message=options['message'],
                wait=options['wait'],
                logger=log,
            )
        except ValidationError as e:
            if json_output:
                self.stdout.write(
                    json.dumps({'status': 'error', 'error': e.messages[0], 'code': e.code})
                )
                return
            raise CommandError(e.messages[0])

        if json_output:
            result = {'status': clip.status, 'id': clip.id}
            if clip.has_error:
                result['error'] = clip.error_message
            if clip.is_ready:
                result['media_kind'] = clip.media_kind
                result['path'] = str(clip.get_base_dir())
            self.stdout.write(json.dumps(result, indent=2))
            return

        if clip.is_ready:
            self.stdout.write(self.style.SUCCESS(f'✓ Ready: {clip.id} ({clip.media_kind})'))
            self.stdout.write(f'  Files: {clip.get_base_dir()}')
        elif clip.has_error:
            self.stdout.write(self.style.ERROR(f'✗ Failed: {clip.id}: {clip.error_message}'))
        else:
            self.stdout.write(self.style.SUCCESS(f'✓ Submitted: {clip.id} (processing)'))
