"""
Media format constants.

Centralized definitions of file names and content types used on disk.
"""

ALLOWED_SCHEMES = ['http', 'https']

MEDIA_KIND_VIDEO = 'video'
MEDIA_KIND_SLIDESHOW = 'slideshow'

# Fixed names inside a clip's scratch and final directories
SOURCE_VIDEO_NAME = 'source.mp4'
VIDEO_NAME = 'video.mp4'
THUMBNAIL_NAME = 'thumbnail.jpg'
AUDIO_NAME = 'audio.mp3'
LOG_NAME = 'process.log'


def image_name(index):
    return f'image_{index}.jpg'


CONTENT_TYPES = {
    '.mp4': 'video/mp4',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.webp': 'image/webp',
    '.mp3': 'audio/mpeg',
    '.m4a': 'audio/mp4',
}
