"""
File delivery with HTTP byte-range support.

Mobile players seek by requesting ``Range: bytes=a-b`` slices of the video;
images, thumbnails and audio are served whole.
"""

import mimetypes
import os
import re

from django.http import FileResponse, HttpResponse, StreamingHttpResponse

from clips.service.constants import CONTENT_TYPES

CHUNK_SIZE = 8192

RANGE_RE = re.compile(r'^\s*(\d*)\s*-\s*(\d*)\s*$')


class RangeNotSatisfiable(Exception):
    """The requested range lies entirely outside the file"""

    pass


def parse_range_header(header, size):
    """
    Interpret a Range header against a file of ``size`` bytes.

    Supports ``bytes=a-b``, ``bytes=a-`` and ``bytes=-n``. Headers that are
    malformed, use another unit or ask for several ranges are ignored, in
    which case the whole file is served.

    Returns:
        (start, end) inclusive byte offsets, or None to serve the whole file

    Raises:
        RangeNotSatisfiable: If the range cannot be satisfied
    """
    if not header:
        return None

    unit, _, ranges = header.partition('=')
    if unit.strip().lower() != 'bytes' or not ranges or ',' in ranges:
        return None

    match = RANGE_RE.match(ranges)
    if not match:
        return None
    first, last = match.groups()

    if not first and not last:
        return None

    if not first:
        # Suffix range: the last n bytes
        length = int(last)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable()
        return max(0, size - length), size - 1

    start = int(first)
    if last:
        end = int(last)
        if end < start:
            return None
    else:
        end = size - 1

    if start >= size:
        raise RangeNotSatisfiable()

    return start, min(end, size - 1)


def guess_content_type(path):
    ext = os.path.splitext(str(path))[1].lower()
    if ext in CONTENT_TYPES:
        return CONTENT_TYPES[ext]
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or 'application/octet-stream'


def iter_file_range(path, start, length, chunk_size=CHUNK_SIZE):
    """Yield ``length`` bytes of ``path`` starting at ``start``"""
    with open(path, 'rb') as f:
        f.seek(start)
        remaining = length
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def serve_file(request, path, content_type=None, allow_ranges=True):
    """
    Build the response for one on-disk file.

    The caller checks the file exists. With ``allow_ranges`` a valid Range
    header yields 206, an unsatisfiable one 416, anything else 200.
    """
    content_type = content_type or guess_content_type(path)
    size = os.path.getsize(path)

    byte_range = None
    if allow_ranges:
        try:
            byte_range = parse_range_header(request.headers.get('Range'), size)
        except RangeNotSatisfiable:
            response = HttpResponse(status=416)
            response['Content-Range'] = f'bytes */{size}'
            response['Accept-Ranges'] = 'bytes'
            return response

    if byte_range is None:
        response = FileResponse(open(path, 'rb'), content_type=content_type)
        response['Content-Length'] = str(size)
    else:
        start, end = byte_range
        length = end - start + 1
        response = StreamingHttpResponse(
            iter_file_range(path, start, length), status=206, content_type=content_type
        )
        response['Content-Length'] = str(length)
        response['Content-Range'] = f'bytes {start}-{end}/{size}'

    if allow_ranges:
        response['Accept-Ranges'] = 'bytes'
    return response
