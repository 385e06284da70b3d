from pathlib import Path

from django.conf import settings
from django.db import models
from django.utils import timezone
from nanoid import generate

from clips.service.config import get_media_dir
from clips.service.transform import SlideshowPayload, VideoPayload


def generate_nanoid():
    """Generate NanoID with A-Z a-z 0-9 alphabet"""
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    return generate(alphabet, size=21)


class ClipQuerySet(models.QuerySet):
    def ready(self):
        return self.filter(status=Clip.STATUS_READY)

    def expired(self, now=None):
        return self.filter(expires_at__lt=now or timezone.now())

    def mark_ready(self, clip_id, payload, author=None, caption=None):
        """
        Commit a processing clip to READY in a single UPDATE.

        Every kind-specific column comes from the payload, so the row can
        never be READY with paths missing for its media kind. Returns False
        if the clip is gone or no longer processing.
        """
        fields = Clip.ready_fields(payload)
        fields['source_author'] = (author or '')[:200]
        fields['source_caption'] = caption or ''
        updated = self.filter(pk=clip_id, status=Clip.STATUS_PROCESSING).update(**fields)
        return updated == 1

    def mark_failed(self, clip_id, message):
        """Commit a processing clip to FAILED. Returns False if nothing changed."""
        updated = self.filter(pk=clip_id, status=Clip.STATUS_PROCESSING).update(
            status=Clip.STATUS_FAILED,
            error_message=message or 'Processing failed',
        )
        return updated == 1


class Clip(models.Model):
    """A submitted link and the playable media produced from it"""

    # Status choices
    STATUS_PROCESSING = "processing"
    STATUS_READY = "ready"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PROCESSING, "Processing"),
        (STATUS_READY, "Ready"),
        (STATUS_FAILED, "Failed"),
    ]

    # Media kind choices (blank until the clip is ready)
    MEDIA_KIND_VIDEO = "video"
    MEDIA_KIND_SLIDESHOW = "slideshow"

    MEDIA_KIND_CHOICES = [
        (MEDIA_KIND_VIDEO, "Video"),
        (MEDIA_KIND_SLIDESHOW, "Slideshow"),
    ]

    # Primary key, also the public handle in delivery URLs
    id = models.CharField(
        max_length=21, primary_key=True, default=generate_nanoid, editable=False
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='clips'
    )
    source_url = models.URLField(max_length=2048)
    media_kind = models.CharField(max_length=10, choices=MEDIA_KIND_CHOICES, blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_PROCESSING, db_index=True
    )

    # File paths (relative to the clip directory)
    primary_path = models.CharField(max_length=500, blank=True)
    thumbnail_path = models.CharField(max_length=500, blank=True)
    image_paths = models.JSONField(default=list, blank=True)
    audio_path = models.CharField(max_length=500, blank=True)
    log_path = models.CharField(max_length=500, blank=True)

    # Metadata
    duration_seconds = models.IntegerField(null=True, blank=True)
    file_size_bytes = models.BigIntegerField(null=True, blank=True)
    source_author = models.CharField(max_length=200, blank=True)
    source_caption = models.TextField(blank=True)
    user_message = models.CharField(max_length=100, blank=True)
    error_message = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    expires_at = models.DateTimeField(db_index=True)

    objects = ClipQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="clip_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.source_url} ({self.id})"

    @property
    def is_ready(self):
        return self.status == self.STATUS_READY

    @property
    def has_error(self):
        return self.status == self.STATUS_FAILED

    @property
    def is_slideshow(self):
        return self.media_kind == self.MEDIA_KIND_SLIDESHOW

    @classmethod
    def ready_fields(cls, payload):
        """Map a transform payload to the column values of a READY clip"""
        if isinstance(payload, VideoPayload):
            return {
                'status': cls.STATUS_READY,
                'media_kind': cls.MEDIA_KIND_VIDEO,
                'primary_path': Path(payload.path).name,
                'thumbnail_path': Path(payload.thumbnail_path).name if payload.thumbnail_path else '',
                'image_paths': [],
                'audio_path': '',
                'duration_seconds': payload.duration_seconds,
                'file_size_bytes': payload.file_size,
                'error_message': '',
            }
        if isinstance(payload, SlideshowPayload):
            if not payload.image_paths:
                raise ValueError("A slideshow needs at least one image")
            names = [Path(p).name for p in payload.image_paths]
            return {
                'status': cls.STATUS_READY,
                'media_kind': cls.MEDIA_KIND_SLIDESHOW,
                'primary_path': names[0],
                'thumbnail_path': Path(payload.thumbnail_path).name if payload.thumbnail_path else names[0],
                'image_paths': names,
                'audio_path': Path(payload.audio_path).name if payload.audio_path else '',
                'duration_seconds': None,
                'file_size_bytes': payload.file_size,
                'error_message': '',
            }
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    @property
    def payload(self):
        """Kind-specific view of a READY clip with absolute paths, or None"""
        if not self.is_ready:
            return None
        if self.media_kind == self.MEDIA_KIND_VIDEO:
            return VideoPayload(
                path=self.get_absolute_primary_path(),
                thumbnail_path=self.get_absolute_thumbnail_path(),
                duration_seconds=self.duration_seconds,
                file_size=self.file_size_bytes or 0,
            )
        return SlideshowPayload(
            image_paths=[self.get_absolute_path(name) for name in self.image_paths],
            audio_path=self.get_absolute_audio_path(),
            thumbnail_path=self.get_absolute_thumbnail_path(),
            file_size=self.file_size_bytes or 0,
        )

    def get_base_dir(self):
        """Get absolute directory holding this clip's final files"""
        return Path(get_media_dir()) / self.id

    def get_work_dir(self):
        """Get absolute scratch directory used while the clip is processing"""
        return Path(get_media_dir()) / f"tmp-{self.id}"

    def get_absolute_path(self, filename):
        if not filename:
            return None
        return self.get_base_dir() / filename

    def get_absolute_primary_path(self):
        return self.get_absolute_path(self.primary_path)

    def get_absolute_thumbnail_path(self):
        return self.get_absolute_path(self.thumbnail_path)

    def get_absolute_audio_path(self):
        return self.get_absolute_path(self.audio_path)

    def get_absolute_log_path(self):
        return self.get_absolute_path(self.log_path)

    def get_absolute_image_path(self, index):
        """Get absolute path of the image at ``index``, or None when out of range"""
        if index < 0 or index >= len(self.image_paths or []):
            return None
        return self.get_absolute_path(self.image_paths[index])

    def referenced_files(self):
        """All absolute file paths this clip points at, without duplicates"""
        names = [self.primary_path, self.thumbnail_path, self.audio_path, self.log_path]
        names.extend(self.image_paths or [])
        seen = []
        for name in names:
            if name and name not in seen:
                seen.append(name)
        return [self.get_absolute_path(name) for name in seen]

    def is_retained_forever(self):
        from clips.reaper import get_retention_signal

        return self.pk in get_retention_signal()(clip_ids=[self.pk])


class Favorite(models.Model):
    """A user's request to keep a clip forever"""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='favorites'
    )
    clip = models.ForeignKey(Clip, on_delete=models.CASCADE, related_name='favorites')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "clip"], name="unique_favorite_per_user"),
        ]

    def __str__(self):
        return f"{self.user} ♥ {self.clip_id}"
