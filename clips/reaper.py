"""
Retention reaper.

Deletes clips whose retention window has passed, except the ones some user
asked to keep forever. Also fails clips left in processing by a worker that
died mid-run.
"""

import logging
import shutil

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from clips.models import Clip, Favorite
from clips.service.config import get_orphan_timeout

module_logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = 'Processing interrupted before completion'


def favorited_clip_ids(clip_ids=None):
    """
    Ids of clips favorited by at least one user.

    With ``clip_ids`` only those clips are looked up.
    """
    favorites = Favorite.objects.all()
    if clip_ids is not None:
        favorites = favorites.filter(clip_id__in=clip_ids)
    return set(favorites.values_list('clip_id', flat=True).distinct())


def get_retention_signal():
    """Load the configured ``f(clip_ids=None) -> set of clip ids`` exempt from expiry"""
    return import_string(settings.CLIPSHARE_RETENTION_SIGNAL)


def reap_expired_clips(now=None, retention_signal=None, logger=None, dry_run=False):
    """
    Delete every expired clip that is not retained forever.

    The retention signal is read once to build the candidate list and again
    for the single clip right before each delete, so a favorite added
    mid-sweep still protects the clip. Errors on one clip are logged and the sweep moves on.

    Args:
        now: Reference time (default: now)
        retention_signal: Callable returning exempt clip ids (default from settings)
        logger: Optional callable(str) for logging
        dry_run: Count what would be deleted without deleting

    Returns:
        int: Number of clips deleted (or that would be deleted)
    """
    def log(message):
        if logger:
            logger(message)

    now = now or timezone.now()
    retention_signal = retention_signal or get_retention_signal()

    exempt = set(retention_signal())
    candidates = list(
        Clip.objects.expired(now).exclude(pk__in=exempt).values_list('pk', flat=True)
    )
    log(f"Found {len(candidates)} expired clips ({len(exempt)} retained)")

    deleted = 0
    for clip_id in candidates:
        try:
            with transaction.atomic():
                if clip_id in set(retention_signal(clip_ids=[clip_id])):
                    log(f"Skipping {clip_id}: retained since scan")
                    continue

                if dry_run:
                    log(f"Would delete {clip_id}")
                    deleted += 1
                    continue

                _, per_model = Clip.objects.filter(pk=clip_id, expires_at__lt=now).delete()
                if per_model.get(Clip._meta.label):
                    log(f"Deleted {clip_id}")
                    deleted += 1
        except Exception as e:
            module_logger.exception("Error reaping clip %s", clip_id)
            log(f"Error reaping {clip_id}: {e}")

    return deleted


def recover_interrupted_clips(max_age=None, now=None, logger=None):
    """
    Fail clips stuck in processing longer than ``max_age``.

    Returns:
        int: Number of clips moved to failed
    """
    def log(message):
        if logger:
            logger(message)

    now = now or timezone.now()
    cutoff = now - (max_age or get_orphan_timeout())

    recovered = 0
    stale = Clip.objects.filter(status=Clip.STATUS_PROCESSING, created_at__lt=cutoff)
    for clip in stale:
        if Clip.objects.mark_failed(clip.pk, INTERRUPTED_MESSAGE):
            shutil.rmtree(clip.get_work_dir(), ignore_errors=True)
            log(f"Marked {clip.pk} as failed (interrupted)")
            recovered += 1

    return recovered
