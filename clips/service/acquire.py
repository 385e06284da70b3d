"""
Media acquisition.

Fetches the raw media behind a share link into a scratch directory. The
primary provider is tried first; if anything about it fails, a single video
is fetched with yt-dlp instead. Slideshows only come from the provider.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from clips.service.constants import (
    AUDIO_NAME,
    MEDIA_KIND_SLIDESHOW,
    MEDIA_KIND_VIDEO,
    SOURCE_VIDEO_NAME,
    image_name,
)
from clips.service.download import (
    DownloadError,
    download_direct,
    download_ytdlp,
    try_download,
)
from clips.service.provider import resolve_media


class AcquisitionFailed(Exception):
    """Raised when neither the provider nor the fallback produced media"""

    pass


@dataclass
class AcquisitionResult:
    """Raw media on disk, ready for the transform step"""

    media_kind: str
    video_path: Optional[Path] = None
    image_paths: List[Path] = field(default_factory=list)
    audio_path: Optional[Path] = None
    author: Optional[str] = None
    caption: Optional[str] = None

    @property
    def is_slideshow(self):
        return self.media_kind == MEDIA_KIND_SLIDESHOW


def acquire(url, work_dir, logger=None, provider=None, downloader=None):
    """
    Fetch the media behind ``url`` into ``work_dir``.

    Args:
        url: Share link as submitted
        work_dir: Scratch directory for this clip
        logger: Optional callable(str) for logging
        provider: Callable(url, logger=...) returning ResolvedMedia
            (default: the provider API)
        downloader: Fallback tool (default: yt-dlp from settings)

    Returns:
        AcquisitionResult

    Raises:
        AcquisitionFailed: With the fallback's failure text when both paths fail
    """
    def log(message):
        if logger:
            logger(message)

    work_dir = Path(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    provider = provider or resolve_media

    try:
        return _acquire_from_provider(url, work_dir, provider, log)
    except Exception as e:
        # Provider is a third party; any failure there moves on to the fallback
        log(f"Primary provider failed: {e}")

    source_path = work_dir / SOURCE_VIDEO_NAME
    if source_path.exists():
        source_path.unlink()

    log("Trying fallback downloader")
    try:
        info = download_ytdlp(url, source_path, downloader=downloader, logger=log)
    except DownloadError as e:
        log(f"Fallback downloader failed: {e}")
        raise AcquisitionFailed(str(e)) from e

    return AcquisitionResult(media_kind=MEDIA_KIND_VIDEO, video_path=info.path)


def _acquire_from_provider(url, work_dir, provider, log):
    media = provider(url, logger=log)

    if media.is_slideshow:
        log(f"Downloading {len(media.image_urls)} slideshow images")
        image_paths = []
        for index, image_url in enumerate(media.image_urls):
            info = try_download(image_url, work_dir / image_name(index), logger=log)
            if info:
                image_paths.append(info.path)
            else:
                log(f"Skipping image {index + 1}")

        if not image_paths:
            raise DownloadError("Failed to download any images")

        audio_path = None
        if media.audio_url:
            info = try_download(media.audio_url, work_dir / AUDIO_NAME, logger=log)
            if info:
                audio_path = info.path
            else:
                log("Audio download failed, continuing without audio")

        return AcquisitionResult(
            media_kind=MEDIA_KIND_SLIDESHOW,
            image_paths=image_paths,
            audio_path=audio_path,
            author=media.author,
            caption=media.caption,
        )

    info = download_direct(media.video_url, work_dir / SOURCE_VIDEO_NAME, logger=log)
    return AcquisitionResult(
        media_kind=MEDIA_KIND_VIDEO,
        video_path=info.path,
        author=media.author,
        caption=media.caption,
    )
