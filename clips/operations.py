"""
High-level operations that can be used by views, tasks, and management commands.

This module provides testable functions that encapsulate business logic,
making it easy to test operations without going through Django views or
management commands.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlparse

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from clips.models import Clip, Favorite
from clips.service.config import (
    get_allowed_hosts,
    get_message_max_length,
    get_retention_window,
)
from clips.service.constants import ALLOWED_SCHEMES, LOG_NAME


@dataclass
class FavoriteState:
    """Favorite status of a clip as seen by one user"""
    is_favorited: bool
    scheduled_deletion_at: Optional[datetime] = None


def validate_source_url(url):
    """
    Check that a submitted link points at a supported host.

    Returns:
        str: The stripped URL

    Raises:
        ValidationError: code 'invalid_url'
    """
    url = (url or '').strip()
    if not url:
        raise ValidationError('Missing required parameter: url', code='invalid_url')

    try:
        parsed = urlparse(url)
    except ValueError:
        raise ValidationError('Invalid URL', code='invalid_url')

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.hostname:
        raise ValidationError('Invalid URL', code='invalid_url')

    if parsed.hostname.lower() not in get_allowed_hosts():
        raise ValidationError(
            f'Unsupported host: {parsed.hostname}', code='invalid_url'
        )

    return url


def validate_message(message):
    """
    Normalize an optional user message.

    Returns:
        str: Stripped message ('' when absent)

    Raises:
        ValidationError: code 'message_too_long'
    """
    message = (message or '').strip()
    max_length = get_message_max_length()
    if len(message) > max_length:
        raise ValidationError(
            f'Message must be {max_length} characters or fewer', code='message_too_long'
        )
    return message


def submit_clip(owner, source_url, message=None, wait=False, logger=None):
    """
    Create a clip for a share link and start processing it.

    This is the core operation used by:
    - POST /api/clips/
    - Management command: ./manage.py submit_clip

    Args:
        owner: User submitting the link
        source_url: Share link
        message: Optional short note shown with the clip
        wait: If True, run synchronously. If False, enqueue background task.
        logger: Optional callable(message) for logging

    Returns:
        Clip: The new clip, still processing unless wait=True

    Raises:
        ValidationError: For an unsupported link or an over-long message

    Example:
        >>> clip = submit_clip(user, 'https://www.tiktok.com/@a/video/1')
        >>> clip.status
        'processing'
    """
    def log(text):
        if logger:
            logger(text)

    url = validate_source_url(source_url)
    message = validate_message(message)

    now = timezone.now()
    clip = Clip.objects.create(
        owner=owner,
        source_url=url,
        user_message=message,
        log_path=LOG_NAME,
        created_at=now,
        expires_at=now + get_retention_window(),
    )
    log(f'Created clip: {clip.id}')

    from clips.tasks import process_clip

    if wait:
        # Run synchronously (blocking) - used by CLI
        log('Processing synchronously...')
        process_clip.call_local(clip.id)
        clip.refresh_from_db()
    else:
        # Enqueue background task - used by web
        # The worker must see the committed row
        log('Enqueued background task')
        transaction.on_commit(lambda: process_clip(clip.id))

    return clip


def delete_clip(clip_id, user):
    """
    Delete a clip on its owner's request, regardless of expiry.

    Returns:
        bool: True if deleted, False if there was no such clip

    Raises:
        PermissionDenied: If ``user`` does not own the clip
    """
    clip = Clip.objects.filter(pk=clip_id).first()
    if clip is None:
        return False
    if clip.owner_id != user.pk:
        raise PermissionDenied('Only the owner can delete this clip')
    clip.delete()
    return True


def get_favorite_state(clip, user):
    is_favorited = Favorite.objects.filter(user=user, clip=clip).exists()
    retained = is_favorited or clip.is_retained_forever()
    return FavoriteState(
        is_favorited=is_favorited,
        scheduled_deletion_at=None if retained else clip.expires_at,
    )


def favorite_clip(clip_id, user):
    """
    Ask to keep a clip forever. Idempotent.

    Raises:
        Clip.DoesNotExist: For an unknown id
    """
    clip = Clip.objects.get(pk=clip_id)
    Favorite.objects.get_or_create(user=user, clip=clip)
    return get_favorite_state(clip, user)


def unfavorite_clip(clip_id, user):
    """
    Withdraw a keep-forever request. Idempotent.

    The clip only becomes eligible for expiry again once no user retains it.

    Raises:
        Clip.DoesNotExist: For an unknown id
    """
    clip = Clip.objects.get(pk=clip_id)
    Favorite.objects.filter(user=user, clip=clip).delete()
    return get_favorite_state(clip, user)


def visible_to_everyone(queryset, user):
    """Default visibility filter: every user sees every clip"""
    return queryset


def get_visibility_filter():
    return import_string(settings.CLIPSHARE_VISIBILITY_FILTER)


def list_recent_clips(user, hours=None, now=None):
    """
    Ready clips created in the last ``hours`` hours, newest first.

    Args:
        user: Requesting user (passed to the visibility filter)
        hours: Look-back window (default CLIPSHARE_FEED_DEFAULT_HOURS)
        now: Reference time (default: now)
    """
    hours = settings.CLIPSHARE_FEED_DEFAULT_HOURS if hours is None else hours
    now = now or timezone.now()
    queryset = Clip.objects.ready().filter(created_at__gte=now - timedelta(hours=hours))
    queryset = get_visibility_filter()(queryset, user)
    return queryset.select_related('owner').order_by('-created_at')


def count_new_clips(user, since):
    """Number of visible ready clips created after ``since``"""
    queryset = Clip.objects.ready().filter(created_at__gt=since)
    return get_visibility_filter()(queryset, user).count()


def list_favorite_clips(user):
    """Ready clips the user has favorited, newest first"""
    favorited = Favorite.objects.filter(user=user).values('clip_id')
    queryset = Clip.objects.ready().filter(pk__in=favorited)
    queryset = get_visibility_filter()(queryset, user)
    return queryset.select_related('owner').order_by('-created_at')
