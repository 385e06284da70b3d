"""
Django-specific clip processing.

This module bridges the service layer and the Clip model. It is used by:
- Huey background tasks (clips/tasks.py)
- CLI commands (manage.py submit_clip --wait)

A run works in tmp-{id}/ inside the media folder, then moves the directory
to {id}/ and commits the clip as ready in one update. Any failure removes
both directories and commits the clip as failed.
"""

import dataclasses
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from clips.models import Clip
from clips.service.acquire import AcquisitionFailed, acquire
from clips.service.constants import LOG_NAME, THUMBNAIL_NAME, VIDEO_NAME
from clips.service.transform import (
    SlideshowPayload,
    TransformFailed,
    VideoPayload,
    assemble_slideshow,
    transcode_video,
)

logger = logging.getLogger(__name__)


def write_log(log_path, message):
    """Append message to log file"""
    if log_path:
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        with open(log_path, 'a') as f:
            timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
            f.write(f"[{timestamp}] {message}\n")


def failure_message(error):
    """Describe a pipeline failure for Clip.error_message (never empty)"""
    if isinstance(error, (AcquisitionFailed, TransformFailed)):
        return str(error) or type(error).__name__
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


def run_clip_pipeline(clip_id, provider=None, downloader=None, transcoder=None, prober=None):
    """
    Acquire, transform and commit one clip.

    Nothing raised inside the run escapes; failures end up on the clip.

    Args:
        clip_id: Clip primary key
        provider, downloader, transcoder, prober: Optional overrides of the
            service-layer collaborators (tests pass fakes)

    Returns:
        bool: True if the clip was committed as ready
    """
    try:
        clip = Clip.objects.get(pk=clip_id)
    except Clip.DoesNotExist:
        logger.info("Clip %s no longer exists, skipping", clip_id)
        return False

    if clip.status != Clip.STATUS_PROCESSING:
        logger.info("Clip %s is already %s, skipping", clip_id, clip.status)
        return False

    work_dir = clip.get_work_dir()
    final_dir = clip.get_base_dir()
    log_path = {'current': work_dir / LOG_NAME}

    def log(message):
        write_log(log_path['current'], message)
        logger.info("[%s] %s", clip_id, message)

    try:
        if work_dir.exists():
            shutil.rmtree(work_dir)

        log(f"Processing {clip.source_url}")

        result = acquire(
            clip.source_url, work_dir, logger=log, provider=provider, downloader=downloader
        )

        if result.is_slideshow:
            payload = assemble_slideshow(result.image_paths, result.audio_path, logger=log)
        else:
            payload = transcode_video(
                result.video_path,
                work_dir / VIDEO_NAME,
                work_dir / THUMBNAIL_NAME,
                transcoder=transcoder,
                prober=prober,
                logger=log,
            )

        log(f"Moving files to {final_dir.name}/")
        if final_dir.exists():
            shutil.rmtree(final_dir)
        shutil.move(str(work_dir), str(final_dir))
        log_path['current'] = final_dir / LOG_NAME

        payload = relocate_payload(payload, final_dir)
        missing = [p.name for p in payload_files(payload) if not p.is_file()]
        if missing:
            raise TransformFailed(f"Missing output files: {', '.join(missing)}")

        if not Clip.objects.mark_ready(
            clip_id, payload, author=result.author, caption=result.caption
        ):
            logger.info("Clip %s was removed during processing, discarding files", clip_id)
            _remove_dir(final_dir)
            return False

        log("Clip ready")
        return True

    except Exception as e:
        message = failure_message(e)
        if isinstance(e, (AcquisitionFailed, TransformFailed)):
            logger.warning("Clip %s failed: %s", clip_id, message)
        else:
            logger.exception("Unexpected error processing clip %s", clip_id)

        _remove_dir(work_dir)
        _remove_dir(final_dir)

        try:
            Clip.objects.mark_failed(clip_id, message)
        except Exception:
            logger.exception("Could not record failure for clip %s", clip_id)
        return False


def relocate_payload(payload, directory):
    """Point every path of a payload at the same file names inside ``directory``"""
    directory = Path(directory)

    def moved(path):
        return directory / Path(path).name if path else None

    if isinstance(payload, VideoPayload):
        return dataclasses.replace(
            payload, path=moved(payload.path), thumbnail_path=moved(payload.thumbnail_path)
        )
    return dataclasses.replace(
        payload,
        image_paths=[moved(p) for p in payload.image_paths],
        audio_path=moved(payload.audio_path),
        thumbnail_path=moved(payload.thumbnail_path),
    )


def payload_files(payload):
    """All files a payload references"""
    if isinstance(payload, SlideshowPayload):
        files = list(payload.image_paths)
        if payload.audio_path:
            files.append(payload.audio_path)
    else:
        files = [payload.path]
    if payload.thumbnail_path and payload.thumbnail_path not in files:
        files.append(payload.thumbnail_path)
    return [Path(p) for p in files]


def _remove_dir(path):
    if path and os.path.exists(path):
        shutil.rmtree(path, ignore_errors=True)
