"""
Tests for clips/processing.py and the process_clip task
"""
import tempfile
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from clips.models import Clip
from clips.processing import failure_message, run_clip_pipeline
from clips.service.acquire import AcquisitionFailed
from clips.service.download import DownloadedFileInfo
from clips.service.provider import ProviderError, ResolvedMedia
from clips.tests.fakes import (
    FakeDownloader,
    FakeProber,
    FakeTranscoder,
    make_image_bytes,
)

URL = 'https://www.tiktok.com/@someone/video/7300000000000000000'


def video_provider(url, logger=None):
    return ResolvedMedia(
        kind='video', video_url='https://cdn.example/hd.mp4', author='someone', caption='hello'
    )


def failing_provider(url, logger=None):
    raise ProviderError('Provider request failed: 503 Server Error')


def slideshow_provider(url, logger=None):
    return ResolvedMedia(
        kind='slideshow',
        image_urls=[f'https://cdn.example/{i}.jpg' for i in range(5)],
        audio_url='https://cdn.example/song.mp3',
        author='someone',
    )


def fake_direct(url, out_path, logger=None):
    out_path = Path(out_path)
    out_path.write_bytes(b'provider-video')
    return DownloadedFileInfo(path=out_path, file_size=out_path.stat().st_size)


class PipelineTestCase(TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.media_dir = Path(self.temp_dir.name)
        self.override = override_settings(CLIPSHARE_MEDIA_DIR=self.media_dir)
        self.override.enable()
        self.user = get_user_model().objects.create_user('alice', password='pw')
        now = timezone.now()
        self.clip = Clip.objects.create(
            owner=self.user,
            source_url=URL,
            log_path='process.log',
            created_at=now,
            expires_at=now + timedelta(days=7),
        )

    def tearDown(self):
        self.override.disable()
        self.temp_dir.cleanup()

    def leftover_dirs(self):
        return sorted(p.name for p in self.media_dir.iterdir())


class VideoPipelineTest(PipelineTestCase):
    @patch('clips.service.acquire.download_direct', side_effect=fake_direct)
    def test_video_happy_path(self, mock_direct):
        ok = run_clip_pipeline(
            self.clip.id,
            provider=video_provider,
            downloader=FakeDownloader(),
            transcoder=FakeTranscoder(),
            prober=FakeProber(duration=12),
        )

        self.assertTrue(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_READY)
        self.assertEqual(self.clip.media_kind, Clip.MEDIA_KIND_VIDEO)
        self.assertEqual(self.clip.primary_path, 'video.mp4')
        self.assertEqual(self.clip.thumbnail_path, 'thumbnail.jpg')
        self.assertEqual(self.clip.duration_seconds, 12)
        self.assertEqual(self.clip.source_author, 'someone')
        self.assertEqual(self.clip.source_caption, 'hello')

        base_dir = self.clip.get_base_dir()
        self.assertTrue((base_dir / 'video.mp4').is_file())
        self.assertTrue((base_dir / 'thumbnail.jpg').is_file())
        self.assertTrue((base_dir / 'process.log').is_file())
        self.assertFalse((base_dir / 'source.mp4').exists())
        self.assertEqual(self.leftover_dirs(), [self.clip.id])

    def test_fallback_video(self):
        ok = run_clip_pipeline(
            self.clip.id,
            provider=failing_provider,
            downloader=FakeDownloader(),
            transcoder=FakeTranscoder(thumbnail_ok=False),
            prober=FakeProber(duration=None),
        )

        self.assertTrue(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_READY)
        self.assertEqual(self.clip.thumbnail_path, '')
        self.assertIsNone(self.clip.duration_seconds)
        self.assertEqual(self.clip.source_author, '')

    def test_total_acquisition_failure(self):
        downloader = FakeDownloader(returncode=1, stderr='ERROR: Unable to download webpage')

        ok = run_clip_pipeline(
            self.clip.id,
            provider=failing_provider,
            downloader=downloader,
            transcoder=FakeTranscoder(),
            prober=FakeProber(),
        )

        self.assertFalse(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_FAILED)
        self.assertIn('ERROR: Unable to download webpage', self.clip.error_message)
        self.assertEqual(self.leftover_dirs(), [])

    @patch('clips.service.acquire.download_direct', side_effect=fake_direct)
    def test_transcode_failure(self, mock_direct):
        ok = run_clip_pipeline(
            self.clip.id,
            provider=video_provider,
            downloader=FakeDownloader(),
            transcoder=FakeTranscoder(returncode=1, stderr='moov atom not found'),
            prober=FakeProber(),
        )

        self.assertFalse(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_FAILED)
        self.assertIn('moov atom not found', self.clip.error_message)
        self.assertEqual(self.leftover_dirs(), [])

    @patch('clips.processing.acquire', side_effect=RuntimeError('disk on fire'))
    def test_unexpected_error_is_recorded(self, mock_acquire):
        ok = run_clip_pipeline(self.clip.id)

        self.assertFalse(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_FAILED)
        self.assertEqual(self.clip.error_message, 'RuntimeError: disk on fire')

    def test_missing_clip_is_ignored(self):
        self.assertFalse(run_clip_pipeline('doesnotexist'))

    def test_finished_clip_is_not_reprocessed(self):
        Clip.objects.mark_failed(self.clip.id, 'earlier failure')

        with patch('clips.processing.acquire') as mock_acquire:
            self.assertFalse(run_clip_pipeline(self.clip.id))
            mock_acquire.assert_not_called()

    @patch('clips.service.acquire.download_direct', side_effect=fake_direct)
    def test_clip_deleted_during_processing(self, mock_direct):
        clip_id = self.clip.id

        class DeletingProber(FakeProber):
            def probe_duration(self, path):
                Clip.objects.filter(pk=clip_id).delete()
                return 12

        ok = run_clip_pipeline(
            clip_id,
            provider=video_provider,
            downloader=FakeDownloader(),
            transcoder=FakeTranscoder(),
            prober=DeletingProber(),
        )

        self.assertFalse(ok)
        self.assertFalse(Clip.objects.filter(pk=clip_id).exists())
        self.assertEqual(self.leftover_dirs(), [])


class SlideshowPipelineTest(PipelineTestCase):
    @patch('clips.service.acquire.try_download')
    def test_two_of_five_images_fail(self, mock_try):
        failing = {'https://cdn.example/1.jpg', 'https://cdn.example/3.jpg'}

        def fetch(url, out_path, logger=None):
            if url in failing:
                return None
            out_path = Path(out_path)
            out_path.write_bytes(b'audio' if url.endswith('.mp3') else make_image_bytes())
            return DownloadedFileInfo(path=out_path, file_size=out_path.stat().st_size)

        mock_try.side_effect = fetch
        downloader = FakeDownloader()

        ok = run_clip_pipeline(self.clip.id, provider=slideshow_provider, downloader=downloader)

        self.assertTrue(ok)
        self.clip.refresh_from_db()
        self.assertEqual(self.clip.status, Clip.STATUS_READY)
        self.assertEqual(self.clip.media_kind, Clip.MEDIA_KIND_SLIDESHOW)
        self.assertEqual(self.clip.image_paths, ['image_0.jpg', 'image_2.jpg', 'image_4.jpg'])
        self.assertEqual(self.clip.thumbnail_path, 'image_0.jpg')
        self.assertEqual(self.clip.audio_path, 'audio.mp3')
        for path in self.clip.payload.image_paths:
            self.assertTrue(path.is_file())
        self.assertEqual(downloader.calls, [])


class FailureMessageTest(TestCase):
    def test_known_failures_use_their_text(self):
        self.assertEqual(failure_message(AcquisitionFailed('nope')), 'nope')

    def test_unexpected_failures_include_type(self):
        self.assertEqual(failure_message(KeyError('x')), "KeyError: 'x'")
        self.assertEqual(failure_message(ValueError()), 'ValueError')


class ProcessClipTaskTest(TestCase):
    def test_task_delegates_to_pipeline(self):
        from clips.tasks import process_clip

        with patch('clips.tasks.run_clip_pipeline', return_value=True) as mock_run:
            process_clip.call_local('abc')
        mock_run.assert_called_once_with('abc')
