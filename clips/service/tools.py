"""
External tool invocation.

The pipeline shells out to ffmpeg, ffprobe and yt-dlp. Each tool is wrapped in
a small object that knows its binary, how to build its argument list and how
to read its exit status, so engines can be handed a fake tool in tests
instead of spawning real processes.
"""

import subprocess
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings

from clips.service.config import (
    get_ffmpeg_thumbnail_args,
    get_ffmpeg_video_args,
    get_ytdlp_args,
)


class ToolError(Exception):
    """Raised when a tool cannot be started or does not finish in time"""

    pass


@dataclass
class ToolResult:
    """Outcome of one tool invocation"""

    returncode: int
    stdout: str = ''
    stderr: str = ''

    @property
    def ok(self):
        return self.returncode == 0

    def error_text(self, tool_name):
        """Describe a failed run, preferring the tool's own stderr"""
        stderr = (self.stderr or '').strip()
        if stderr:
            # Tools can be chatty; the tail holds the actual error
            return stderr[-1000:]
        return f'{tool_name} exited with code {self.returncode}'


class ExternalTool:
    """Command template (binary + arguments) with a bounded run"""

    name = 'tool'

    def __init__(self, binary, timeout=None):
        self.binary = binary
        self.timeout = timeout

    def build_command(self, args: List) -> List[str]:
        return [self.binary] + [str(arg) for arg in args]

    def run(self, args: List, timeout: Optional[int] = None) -> ToolResult:
        """
        Run the tool to completion.

        Raises:
            ToolError: If the binary is missing or the run exceeds its timeout
        """
        timeout = timeout or self.timeout
        cmd = self.build_command(args)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise ToolError(f'{self.name} timed out after {timeout}s') from e
        except OSError as e:
            raise ToolError(f'{self.name} could not be started: {e}') from e
        return ToolResult(
            returncode=result.returncode,
            stdout=result.stdout or '',
            stderr=result.stderr or '',
        )


class Transcoder(ExternalTool):
    """ffmpeg: mobile-friendly re-encode and thumbnail extraction"""

    name = 'ffmpeg'

    def __init__(self, binary=None, timeout=None, thumbnail_timeout=None):
        super().__init__(
            binary or settings.CLIPSHARE_FFMPEG_BINARY,
            timeout or settings.CLIPSHARE_TRANSCODE_TIMEOUT,
        )
        self.thumbnail_timeout = thumbnail_timeout or settings.CLIPSHARE_THUMBNAIL_TIMEOUT

    def transcode_args(self, input_path, output_path):
        return ['-y', '-i', str(input_path)] + get_ffmpeg_video_args() + [str(output_path)]

    def thumbnail_args(self, input_path, output_path):
        return ['-y', '-i', str(input_path)] + get_ffmpeg_thumbnail_args() + [str(output_path)]

    def transcode(self, input_path, output_path):
        return self.run(self.transcode_args(input_path, output_path))

    def extract_thumbnail(self, input_path, output_path):
        return self.run(self.thumbnail_args(input_path, output_path), timeout=self.thumbnail_timeout)


class Prober(ExternalTool):
    """ffprobe: container duration"""

    name = 'ffprobe'

    def __init__(self, binary=None, timeout=None):
        super().__init__(
            binary or settings.CLIPSHARE_FFPROBE_BINARY,
            timeout or settings.CLIPSHARE_PROBE_TIMEOUT,
        )

    def duration_args(self, path):
        return ['-v', 'quiet', '-show_entries', 'format=duration', '-of', 'csv=p=0', str(path)]

    def probe_duration(self, path):
        """
        Get the media duration in whole seconds.

        Returns:
            int | None: Rounded duration, or None when it cannot be determined
        """
        try:
            result = self.run(self.duration_args(path))
        except ToolError:
            return None
        if not result.ok:
            return None
        try:
            duration = float(result.stdout.strip())
        except ValueError:
            return None
        if duration < 0:
            return None
        return int(duration + 0.5)


class FallbackDownloader(ExternalTool):
    """yt-dlp: generic single-video downloader"""

    name = 'yt-dlp'

    def __init__(self, binary=None, timeout=None):
        super().__init__(
            binary or settings.CLIPSHARE_YTDLP_BINARY,
            timeout or settings.CLIPSHARE_FALLBACK_TIMEOUT,
        )

    def download_args(self, url, output_path):
        return get_ytdlp_args() + ['-o', str(output_path), url]

    def download(self, url, output_path):
        return self.run(self.download_args(url, output_path))


def get_transcoder():
    return Transcoder()


def get_prober():
    return Prober()


def get_fallback_downloader():
    return FallbackDownloader()
