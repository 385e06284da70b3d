"""
Tests for the submit_clip and reap_clips management commands
"""
import json
import tempfile
from datetime import timedelta
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone

from clips.models import Clip

URL = 'https://www.tiktok.com/@someone/video/7300000000000000000'


class SubmitClipCommandTest(TestCase):
    def setUp(self):
        self.process_clip_patcher = patch('clips.tasks.process_clip')
        self.mock_process_clip = self.process_clip_patcher.start()
        self.user = get_user_model().objects.create_user('alice', password='pw')

    def tearDown(self):
        self.process_clip_patcher.stop()

    def test_enqueues(self):
        out = StringIO()
        with self.captureOnCommitCallbacks(execute=True):
            call_command('submit_clip', URL, '--user', 'alice', stdout=out)

        clip = Clip.objects.get()
        self.assertIn(clip.id, out.getvalue())
        self.mock_process_clip.assert_called_once_with(clip.id)

    def test_wait_runs_in_foreground(self):
        call_command('submit_clip', URL, '--user', 'alice', '--wait', stdout=StringIO())

        clip = Clip.objects.get()
        self.mock_process_clip.call_local.assert_called_once_with(clip.id)

    def test_json_output(self):
        out = StringIO()
        call_command('submit_clip', URL, '--user', 'alice', '--message', 'hi', '--json', stdout=out)

        data = json.loads(out.getvalue())
        self.assertEqual(data['status'], 'processing')
        self.assertEqual(Clip.objects.get(pk=data['id']).user_message, 'hi')

    def test_json_validation_error(self):
        out = StringIO()
        call_command('submit_clip', 'https://example.com/x', '--user', 'alice', '--json', stdout=out)

        data = json.loads(out.getvalue())
        self.assertEqual(data['code'], 'invalid_url')

    def test_invalid_url(self):
        with self.assertRaises(CommandError):
            call_command('submit_clip', 'https://example.com/x', '--user', 'alice', stdout=StringIO())

    def test_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command('submit_clip', URL, '--user', 'nobody', stdout=StringIO())


class ReapClipsCommandTest(TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.override = override_settings(CLIPSHARE_MEDIA_DIR=Path(self.temp_dir.name))
        self.override.enable()
        self.user = get_user_model().objects.create_user('alice', password='pw')
        now = timezone.now()
        self.expired = Clip.objects.create(
            owner=self.user,
            source_url=URL,
            status=Clip.STATUS_READY,
            media_kind=Clip.MEDIA_KIND_VIDEO,
            primary_path='video.mp4',
            created_at=now - timedelta(days=8),
            expires_at=now - timedelta(days=1),
        )
        self.stuck = Clip.objects.create(
            owner=self.user,
            source_url=URL,
            created_at=now - timedelta(hours=3),
            expires_at=now + timedelta(days=6),
        )

    def tearDown(self):
        self.override.disable()
        self.temp_dir.cleanup()

    def test_dry_run(self):
        out = StringIO()
        call_command('reap_clips', '--dry-run', stdout=out)

        self.assertIn('Would delete 1 clip', out.getvalue())
        self.assertTrue(Clip.objects.filter(pk=self.expired.pk).exists())

    def test_reap(self):
        out = StringIO()
        call_command('reap_clips', stdout=out)

        self.assertIn('Deleted 1 expired clip', out.getvalue())
        self.assertFalse(Clip.objects.filter(pk=self.expired.pk).exists())
        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, Clip.STATUS_PROCESSING)

    def test_recover(self):
        call_command('reap_clips', '--recover', stdout=StringIO())

        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, Clip.STATUS_FAILED)
