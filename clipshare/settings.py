"""
Django settings for the clipshare project.

Every deployment-specific value is read from the environment so the same
settings module serves the web process, the huey consumer and the tests.
"""

import os
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [part.strip() for part in value.split(',') if part.strip()]


TESTING = 'test' in sys.argv[1:2] or 'pytest' in sys.modules

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-clipshare-dev-key')

DEBUG = env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', ['localhost', '127.0.0.1', 'testserver'])

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'huey.contrib.djhuey',
    'clips',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'clipshare.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'clipshare.wsgi.application'

DATA_DIR = Path(os.environ.get('CLIPSHARE_DATA_DIR', BASE_DIR / 'data'))
DATA_DIR.mkdir(parents=True, exist_ok=True)

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('CLIPSHARE_DATABASE_PATH', str(DATA_DIR / 'clipshare.sqlite3')),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Background processing. The consumer's thread pool is the cap on how many
# clips are acquired and transcoded at the same time.
HUEY = {
    'huey_class': 'huey.SqliteHuey',
    'name': 'clipshare',
    'filename': os.environ.get('CLIPSHARE_HUEY_PATH', str(DATA_DIR / 'huey.sqlite3')),
    'immediate': env_bool('HUEY_IMMEDIATE', TESTING),
    'consumer': {
        'workers': int(os.environ.get('CLIPSHARE_WORKERS', '4')),
        'worker_type': 'thread',
    },
}

# Clip storage and lifecycle
CLIPSHARE_MEDIA_DIR = os.environ.get('CLIPSHARE_MEDIA_DIR', str(DATA_DIR / 'clips'))
CLIPSHARE_RETENTION_DAYS = int(os.environ.get('CLIPSHARE_RETENTION_DAYS', '7'))
CLIPSHARE_MESSAGE_MAX_LENGTH = int(os.environ.get('CLIPSHARE_MESSAGE_MAX_LENGTH', '30'))
CLIPSHARE_FEED_DEFAULT_HOURS = int(os.environ.get('CLIPSHARE_FEED_DEFAULT_HOURS', '24'))
CLIPSHARE_ORPHAN_TIMEOUT_MINUTES = int(os.environ.get('CLIPSHARE_ORPHAN_TIMEOUT_MINUTES', '60'))
CLIPSHARE_REAPER_CRONTAB_MINUTE = os.environ.get('CLIPSHARE_REAPER_CRONTAB_MINUTE', '0')

# Submission intake
CLIPSHARE_ALLOWED_HOSTS = env_list(
    'CLIPSHARE_ALLOWED_HOSTS',
    ['tiktok.com', 'www.tiktok.com', 'vm.tiktok.com', 'm.tiktok.com'],
)

# Acquisition
CLIPSHARE_PROVIDER_API_URL = os.environ.get(
    'CLIPSHARE_PROVIDER_API_URL', 'https://www.tikwm.com/api/'
)
CLIPSHARE_HTTP_TIMEOUT = int(os.environ.get('CLIPSHARE_HTTP_TIMEOUT', '30'))
CLIPSHARE_YTDLP_BINARY = os.environ.get('CLIPSHARE_YTDLP_BINARY', 'yt-dlp')
CLIPSHARE_YTDLP_ARGS = os.environ.get(
    'CLIPSHARE_YTDLP_ARGS', '-f "best[ext=mp4]/best" --no-playlist --no-warnings'
)
CLIPSHARE_FALLBACK_TIMEOUT = int(os.environ.get('CLIPSHARE_FALLBACK_TIMEOUT', '300'))

# Transform
CLIPSHARE_FFMPEG_BINARY = os.environ.get('CLIPSHARE_FFMPEG_BINARY', 'ffmpeg')
CLIPSHARE_FFPROBE_BINARY = os.environ.get('CLIPSHARE_FFPROBE_BINARY', 'ffprobe')
CLIPSHARE_FFMPEG_ARGS_VIDEO = os.environ.get(
    'CLIPSHARE_FFMPEG_ARGS_VIDEO',
    '-c:v libx264 -preset medium -crf 23 -vf "scale=\'min(720,iw)\':-2" '
    '-c:a aac -b:a 128k -movflags +faststart -pix_fmt yuv420p '
    '-max_muxing_queue_size 1024',
)
CLIPSHARE_FFMPEG_ARGS_THUMBNAIL = os.environ.get(
    'CLIPSHARE_FFMPEG_ARGS_THUMBNAIL', '-ss 00:00:01 -vframes 1 -vf scale=480:-1 -q:v 5'
)
CLIPSHARE_TRANSCODE_TIMEOUT = int(os.environ.get('CLIPSHARE_TRANSCODE_TIMEOUT', '600'))
CLIPSHARE_THUMBNAIL_TIMEOUT = int(os.environ.get('CLIPSHARE_THUMBNAIL_TIMEOUT', '60'))
CLIPSHARE_PROBE_TIMEOUT = int(os.environ.get('CLIPSHARE_PROBE_TIMEOUT', '10'))

# Collaborator hooks (dotted paths)
CLIPSHARE_VISIBILITY_FILTER = os.environ.get(
    'CLIPSHARE_VISIBILITY_FILTER', 'clips.operations.visible_to_everyone'
)
CLIPSHARE_RETENTION_SIGNAL = os.environ.get(
    'CLIPSHARE_RETENTION_SIGNAL', 'clips.reaper.favorited_clip_ids'
)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'clips': {
            'handlers': ['console'],
            'level': os.environ.get('CLIPSHARE_LOG_LEVEL', 'WARNING' if TESTING else 'INFO'),
            'propagate': False,
        },
        'huey': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
