"""
Download service for media files.

Handles both direct HTTP downloads and yt-dlp downloads.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from clips.service.config import get_http_timeout
from clips.service.tools import ToolError, get_fallback_downloader


class DownloadError(Exception):
    """Raised when a file could not be fetched completely"""

    pass


@dataclass
class DownloadedFileInfo:
    """Information about a downloaded file"""
    path: Path
    file_size: int
    mime_type: Optional[str] = None


def _remove_partial(path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def download_direct(url, out_path, logger=None, timeout=None):
    """
    Download a media file directly via HTTP.

    Args:
        url: Direct media URL
        out_path: Output file path (Path object or str)
        logger: Optional callable(str) for logging
        timeout: Request timeout in seconds (default from settings)

    Returns:
        DownloadedFileInfo

    Raises:
        DownloadError: On network failure, non-2xx status or a short body
    """
    def log(message):
        if logger:
            logger(message)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    log(f"Downloading from: {url}")
    log(f"Saving to: {out_path.name}")

    try:
        response = requests.get(url, stream=True, timeout=timeout or get_http_timeout())
        response.raise_for_status()
        with open(out_path, 'wb') as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
    except requests.RequestException as e:
        _remove_partial(out_path)
        raise DownloadError(f"Download failed: {e}") from e

    expected = None
    if not response.headers.get('content-encoding'):
        # Length of the encoded body, not comparable after decompression
        expected = response.headers.get('content-length')
    mime_type = response.headers.get('content-type', 'application/octet-stream')

    file_size = out_path.stat().st_size
    if expected and expected.isdigit() and file_size != int(expected):
        _remove_partial(out_path)
        raise DownloadError(f"Incomplete download: got {file_size} of {expected} bytes")
    if file_size == 0:
        _remove_partial(out_path)
        raise DownloadError("Downloaded file is empty")

    log(f"Downloaded {file_size} bytes")

    return DownloadedFileInfo(path=out_path, file_size=file_size, mime_type=mime_type)


def try_download(url, out_path, logger=None):
    """
    Best-effort variant of download_direct.

    Returns:
        DownloadedFileInfo, or None when the download failed
    """
    try:
        return download_direct(url, out_path, logger=logger)
    except DownloadError as e:
        if logger:
            logger(str(e))
        return None


def download_ytdlp(url, out_path, downloader=None, logger=None):
    """
    Download a single video with yt-dlp.

    Success means a zero exit code and the output file on disk.

    Args:
        url: Source URL as submitted
        out_path: Output file path (Path object or str)
        downloader: Tool to run (default: FallbackDownloader from settings)
        logger: Optional callable(str) for logging

    Returns:
        DownloadedFileInfo

    Raises:
        DownloadError: Carrying the tool's own failure text
    """
    def log(message):
        if logger:
            logger(message)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    downloader = downloader or get_fallback_downloader()

    log(f"Downloading with {downloader.name}: {url}")

    try:
        result = downloader.download(url, out_path)
    except ToolError as e:
        raise DownloadError(str(e)) from e

    if not result.ok:
        raise DownloadError(result.error_text(downloader.name))
    if not out_path.exists():
        raise DownloadError(f"{downloader.name} finished without producing {out_path.name}")

    file_size = out_path.stat().st_size
    log(f"{downloader.name} saved {file_size} bytes")

    return DownloadedFileInfo(path=out_path, file_size=file_size)
