import logging

from django.conf import settings
from huey import crontab
from huey.contrib.djhuey import HUEY, db_periodic_task, db_task
from huey.exceptions import TaskLockedException

from clips.processing import run_clip_pipeline
from clips.reaper import reap_expired_clips, recover_interrupted_clips

logger = logging.getLogger(__name__)

REAPER_LOCK = 'clip-reaper'


@db_task()
def process_clip(clip_id):
    """
    Main processing task for a submitted clip.

    Steps:
    1. ACQUIRE - Fetch media via the provider, falling back to yt-dlp
    2. TRANSFORM - Transcode video or assemble slideshow
    3. COMMIT - Move files to the clip directory and mark ready

    Any failure marks the clip failed; the task itself never raises.
    """
    return run_clip_pipeline(clip_id)


def run_reaper(recover=False):
    """
    Run one reaper sweep unless another one is in progress.

    Returns:
        int | None: Clips deleted, or None if the sweep was skipped or failed
    """
    try:
        with HUEY.lock_task(REAPER_LOCK):
            if recover:
                recovered = recover_interrupted_clips()
                if recovered:
                    logger.warning("Marked %d interrupted clips as failed", recovered)
            deleted = reap_expired_clips()
    except TaskLockedException:
        logger.info("Reaper already running, skipping this sweep")
        return None
    except Exception:
        logger.exception("Reaper sweep failed")
        return None

    if deleted:
        logger.info("Reaper deleted %d expired clips", deleted)
    return deleted


@db_periodic_task(crontab(minute=settings.CLIPSHARE_REAPER_CRONTAB_MINUTE))
def reap_expired_clips_task():
    """Hourly retention sweep"""
    return run_reaper()


@HUEY.on_startup()
def reap_on_startup():
    """Recover interrupted clips and sweep once when the consumer starts"""
    run_reaper(recover=True)
