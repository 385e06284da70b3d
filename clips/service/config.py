"""
Configuration adapter for clip processing settings.

Centralizes access to Django settings and environment variables,
ensuring consistent configuration across CLI, worker and web app.
"""

import shlex
from datetime import timedelta

from django.conf import settings


def get_media_dir():
    """Get the directory holding clip directories and scratch directories"""
    return settings.CLIPSHARE_MEDIA_DIR


def get_retention_window():
    """Get how long a clip lives after submission"""
    return timedelta(days=settings.CLIPSHARE_RETENTION_DAYS)


def get_orphan_timeout():
    """Get how long a clip may sit in processing before it counts as interrupted"""
    return timedelta(minutes=settings.CLIPSHARE_ORPHAN_TIMEOUT_MINUTES)


def get_allowed_hosts():
    """
    Get hostnames accepted for submitted links.

    Returns:
        set: Lowercased hostnames
    """
    return {host.lower() for host in settings.CLIPSHARE_ALLOWED_HOSTS}


def get_message_max_length():
    return settings.CLIPSHARE_MESSAGE_MAX_LENGTH


def get_provider_api_url():
    return settings.CLIPSHARE_PROVIDER_API_URL


def get_http_timeout():
    return settings.CLIPSHARE_HTTP_TIMEOUT


def get_ffmpeg_video_args():
    """
    Get ffmpeg arguments for the mobile-friendly video encode.

    Returns:
        list: Parsed arguments placed between the input and output paths
    """
    return shlex.split(settings.CLIPSHARE_FFMPEG_ARGS_VIDEO)


def get_ffmpeg_thumbnail_args():
    """
    Get ffmpeg arguments for single-frame thumbnail extraction.

    Returns:
        list: Parsed arguments placed between the input and output paths
    """
    return shlex.split(settings.CLIPSHARE_FFMPEG_ARGS_THUMBNAIL)


def get_ytdlp_args():
    """
    Get yt-dlp arguments for the fallback download.

    Returns:
        list: Parsed arguments placed before ``-o <output> <url>``
    """
    return shlex.split(settings.CLIPSHARE_YTDLP_ARGS)
