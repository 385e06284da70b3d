"""
Media transform service.

Turns acquired media into a playable payload: a mobile-friendly H.264/AAC
video with a thumbnail, or an ordered set of images with optional audio.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from clips.service.tools import ToolError, get_prober, get_transcoder


class TransformFailed(Exception):
    """Raised when acquired media cannot be turned into a playable payload"""

    pass


@dataclass
class VideoPayload:
    """A transcoded video on disk"""
    path: Path
    thumbnail_path: Optional[Path] = None
    duration_seconds: Optional[int] = None
    file_size: int = 0


@dataclass
class SlideshowPayload:
    """An ordered image sequence on disk, with optional background audio"""
    image_paths: List[Path] = field(default_factory=list)
    audio_path: Optional[Path] = None
    thumbnail_path: Optional[Path] = None
    file_size: int = 0


def transcode_video(input_path, output_path, thumbnail_path=None,
                    transcoder=None, prober=None, logger=None):
    """
    Re-encode a video and extract a thumbnail from the result.

    The source file is removed once the encode succeeds. A missing thumbnail
    or duration does not fail the transform.

    Args:
        input_path: Acquired source video
        output_path: Where the encoded video is written
        thumbnail_path: Where the thumbnail is written (None to skip)
        transcoder: Tool to run (default: ffmpeg from settings)
        prober: Tool to run (default: ffprobe from settings)
        logger: Optional callable(str) for logging

    Returns:
        VideoPayload

    Raises:
        TransformFailed: If the encode fails or produces no output
    """
    def log(message):
        if logger:
            logger(message)

    input_path = Path(input_path)
    output_path = Path(output_path)
    transcoder = transcoder or get_transcoder()
    prober = prober or get_prober()

    if not input_path.exists():
        raise TransformFailed(f"Input file not found: {input_path.name}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    log(f"Transcoding {input_path.name} to {output_path.name}")

    try:
        result = transcoder.transcode(input_path, output_path)
    except ToolError as e:
        _unlink(output_path)
        raise TransformFailed(str(e)) from e

    if not result.ok:
        log(f"ffmpeg stderr: {result.stderr}")
        _unlink(output_path)
        raise TransformFailed(f"Transcoding failed: {result.error_text(transcoder.name)}")

    if not output_path.exists() or output_path.stat().st_size == 0:
        _unlink(output_path)
        raise TransformFailed("Transcoding produced no output")

    file_size = output_path.stat().st_size
    log(f"Transcoded to {file_size} bytes")

    duration = prober.probe_duration(output_path)
    if duration is None:
        log("Could not determine duration")

    thumbnail = None
    if thumbnail_path:
        thumbnail = extract_thumbnail(output_path, thumbnail_path, transcoder=transcoder, logger=logger)

    if input_path != output_path:
        _unlink(input_path)

    return VideoPayload(
        path=output_path,
        thumbnail_path=thumbnail,
        duration_seconds=duration,
        file_size=file_size,
    )


def extract_thumbnail(video_path, thumbnail_path, transcoder=None, logger=None):
    """
    Grab a single frame as the clip thumbnail.

    Returns:
        Path to the thumbnail, or None when extraction failed
    """
    def log(message):
        if logger:
            logger(message)

    thumbnail_path = Path(thumbnail_path)
    transcoder = transcoder or get_transcoder()

    try:
        result = transcoder.extract_thumbnail(video_path, thumbnail_path)
    except ToolError as e:
        log(f"Thumbnail extraction failed: {e}")
        _unlink(thumbnail_path)
        return None

    if not result.ok or not thumbnail_path.exists():
        log(f"Thumbnail extraction failed: {result.error_text(transcoder.name)}")
        _unlink(thumbnail_path)
        return None

    log(f"Thumbnail saved: {thumbnail_path.name}")
    return thumbnail_path


def assemble_slideshow(image_paths, audio_path=None, logger=None):
    """
    Build a slideshow payload from downloaded images.

    Images are kept byte for byte as downloaded and in display order; only
    files missing from disk are skipped. The first image doubles as the
    thumbnail.

    Args:
        image_paths: Downloaded images in display order
        audio_path: Downloaded background audio, if any
        logger: Optional callable(str) for logging

    Returns:
        SlideshowPayload

    Raises:
        TransformFailed: If the image list is empty
    """
    def log(message):
        if logger:
            logger(message)

    images = []
    for path in image_paths:
        path = Path(path)
        if path.is_file():
            images.append(path)
        else:
            log(f"Image missing on disk: {path.name}")

    if not images:
        raise TransformFailed("No images in slideshow")

    audio = Path(audio_path) if audio_path else None
    if audio and not audio.is_file():
        log("Audio file missing, slideshow will be silent")
        audio = None

    file_size = sum(p.stat().st_size for p in images)
    if audio:
        file_size += audio.stat().st_size

    log(f"Slideshow assembled: {len(images)} images, audio: {'yes' if audio else 'no'}")

    return SlideshowPayload(
        image_paths=images,
        audio_path=audio,
        thumbnail_path=images[0],
        file_size=file_size,
    )


def _unlink(path):
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
