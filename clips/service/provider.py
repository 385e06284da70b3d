"""
Primary metadata provider.

Resolves a share link into direct media URLs through an HTTP JSON API that
answers in the TikWM format:

    {"code": 0, "msg": "success", "data": {
        "title": ..., "author": {"nickname": ..., "unique_id": ...},
        "hdplay": ..., "play": ...,                  # videos
        "images": [...], "music": ..., "music_info": {"play": ...}  # slideshows
    }}
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin

import requests

from clips.service.config import get_http_timeout, get_provider_api_url
from clips.service.constants import MEDIA_KIND_SLIDESHOW, MEDIA_KIND_VIDEO


class ProviderError(Exception):
    """Raised when the provider cannot resolve a link to usable media"""

    pass


@dataclass
class ResolvedMedia:
    """Direct media locations for one link"""

    kind: str
    video_url: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    audio_url: Optional[str] = None
    author: Optional[str] = None
    caption: Optional[str] = None

    @property
    def is_slideshow(self):
        return self.kind == MEDIA_KIND_SLIDESHOW


def resolve_media(url, api_url=None, timeout=None, logger=None):
    """
    Ask the provider API for the media behind a share link.

    Args:
        url: Share link submitted by the user
        api_url: Provider endpoint (default from settings)
        timeout: Request timeout in seconds (default from settings)
        logger: Optional callable(str) for logging

    Returns:
        ResolvedMedia

    Raises:
        ProviderError: On network failure, non-2xx, malformed or empty data
    """

    def log(message):
        if logger:
            logger(message)

    api_url = api_url or get_provider_api_url()
    timeout = timeout or get_http_timeout()

    log(f'Resolving with provider: {url}')

    try:
        response = requests.get(api_url, params={'url': url, 'hd': 1}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ProviderError(f'Provider request failed: {e}') from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ProviderError('Provider returned malformed JSON') from e

    media = parse_provider_payload(payload, base_url=api_url)
    if media.is_slideshow:
        log(f'Provider found slideshow with {len(media.image_urls)} images')
    else:
        log('Provider found video')
    return media


def parse_provider_payload(payload, base_url=None):
    """
    Turn a provider response body into ResolvedMedia.

    Relative media URLs are resolved against ``base_url``.

    Raises:
        ProviderError: If the body reports an error or carries no media
    """
    if not isinstance(payload, dict):
        raise ProviderError('Provider returned malformed data')

    if payload.get('code', 0) != 0:
        raise ProviderError(payload.get('msg') or 'Failed to fetch content info')

    data = payload.get('data')
    if not isinstance(data, dict):
        raise ProviderError('Provider returned no data')

    def absolute(media_url):
        if media_url and base_url:
            return urljoin(base_url, media_url)
        return media_url

    author_info = data.get('author')
    author = None
    if isinstance(author_info, dict):
        author = author_info.get('nickname') or author_info.get('unique_id')
    caption = data.get('title') or data.get('desc') or None

    images = [u for u in (data.get('images') or []) if isinstance(u, str) and u]
    if images:
        audio_url = None
        music_info = data.get('music_info')
        if isinstance(music_info, dict):
            audio_url = music_info.get('play')
        audio_url = audio_url or data.get('music') or None
        return ResolvedMedia(
            kind=MEDIA_KIND_SLIDESHOW,
            image_urls=[absolute(u) for u in images],
            audio_url=absolute(audio_url),
            author=author,
            caption=caption,
        )

    video_url = data.get('hdplay') or data.get('play')
    if not video_url:
        raise ProviderError('No video URL found in response')

    return ResolvedMedia(
        kind=MEDIA_KIND_VIDEO,
        video_url=absolute(video_url),
        author=author,
        caption=caption,
    )
