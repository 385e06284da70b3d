"""
Tests for service/provider.py
"""
from unittest.mock import MagicMock, patch

import requests
from django.test import TestCase

from clips.service.provider import (
    ProviderError,
    parse_provider_payload,
    resolve_media,
)

API_URL = 'https://provider.example/api/'


def video_payload(**data):
    body = {
        'title': 'dance #fyp',
        'author': {'nickname': 'Some Dancer', 'unique_id': 'dancer'},
        'hdplay': 'https://cdn.example/hd.mp4',
        'play': 'https://cdn.example/sd.mp4',
    }
    body.update(data)
    return {'code': 0, 'msg': 'success', 'data': body}


class ParseProviderPayloadTest(TestCase):
    def test_video_prefers_hd(self):
        media = parse_provider_payload(video_payload())
        self.assertEqual(media.kind, 'video')
        self.assertFalse(media.is_slideshow)
        self.assertEqual(media.video_url, 'https://cdn.example/hd.mp4')
        self.assertEqual(media.author, 'Some Dancer')
        self.assertEqual(media.caption, 'dance #fyp')

    def test_video_falls_back_to_play(self):
        media = parse_provider_payload(video_payload(hdplay=''))
        self.assertEqual(media.video_url, 'https://cdn.example/sd.mp4')

    def test_author_falls_back_to_unique_id(self):
        media = parse_provider_payload(video_payload(author={'unique_id': 'dancer'}))
        self.assertEqual(media.author, 'dancer')

    def test_slideshow(self):
        payload = video_payload(
            images=['https://cdn.example/1.jpg', 'https://cdn.example/2.jpg'],
            music_info={'play': 'https://cdn.example/song.mp3'},
            music='https://cdn.example/other.mp3',
        )
        media = parse_provider_payload(payload)
        self.assertTrue(media.is_slideshow)
        self.assertEqual(media.image_urls, ['https://cdn.example/1.jpg', 'https://cdn.example/2.jpg'])
        self.assertEqual(media.audio_url, 'https://cdn.example/song.mp3')
        self.assertIsNone(media.video_url)

    def test_slideshow_audio_falls_back_to_music(self):
        payload = video_payload(images=['https://cdn.example/1.jpg'], music='https://cdn.example/m.mp3')
        self.assertEqual(parse_provider_payload(payload).audio_url, 'https://cdn.example/m.mp3')

    def test_relative_urls_resolved_against_api(self):
        payload = video_payload(hdplay='/video/media/hdplay/123.mp4')
        media = parse_provider_payload(payload, base_url='https://provider.example/api/')
        self.assertEqual(media.video_url, 'https://provider.example/video/media/hdplay/123.mp4')

    def test_error_code(self):
        with self.assertRaises(ProviderError) as ctx:
            parse_provider_payload({'code': -1, 'msg': 'Url parsing is failed!'})
        self.assertIn('Url parsing is failed!', str(ctx.exception))

    def test_missing_data(self):
        with self.assertRaises(ProviderError):
            parse_provider_payload({'code': 0, 'data': None})

    def test_no_media(self):
        with self.assertRaises(ProviderError):
            parse_provider_payload({'code': 0, 'data': {'title': 'x'}})

    def test_not_a_dict(self):
        with self.assertRaises(ProviderError):
            parse_provider_payload(['nope'])


class ResolveMediaTest(TestCase):
    @patch('clips.service.provider.requests.get')
    def test_calls_api_with_url_and_timeout(self, mock_get):
        mock_response = MagicMock()
        mock_response.json.return_value = video_payload()
        mock_get.return_value = mock_response

        media = resolve_media('https://www.tiktok.com/@a/video/1', api_url=API_URL, timeout=7)

        mock_get.assert_called_once_with(
            API_URL, params={'url': 'https://www.tiktok.com/@a/video/1', 'hd': 1}, timeout=7
        )
        self.assertEqual(media.video_url, 'https://cdn.example/hd.mp4')

    @patch('clips.service.provider.requests.get')
    def test_http_error(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError('503 Server Error')
        mock_get.return_value = mock_response

        with self.assertRaises(ProviderError):
            resolve_media('https://www.tiktok.com/@a/video/1', api_url=API_URL)

    @patch('clips.service.provider.requests.get')
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(ProviderError):
            resolve_media('https://www.tiktok.com/@a/video/1', api_url=API_URL)

    @patch('clips.service.provider.requests.get')
    def test_malformed_json(self, mock_get):
        mock_response = MagicMock()
        mock_response.json.side_effect = ValueError('Expecting value')
        mock_get.return_value = mock_response

        with self.assertRaises(ProviderError) as ctx:
            resolve_media('https://www.tiktok.com/@a/video/1', api_url=API_URL)
        self.assertIn('malformed', str(ctx.exception))
