from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from clips.models import Clip, Favorite


@admin.register(Clip)
class ClipAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'owner',
        'media_kind',
        'status',
        'file_size_display',
        'created_at',
        'expires_at',
        'favorite_count',
    ]

    list_filter = [
        'status',
        'media_kind',
        'created_at',
        'expires_at',
    ]

    search_fields = [
        'id',
        'source_url',
        'source_author',
        'user_message',
        'owner__username',
    ]

    readonly_fields = [
        'id',
        'created_at',
        'preview_display',
        'log_display',
    ]

    fieldsets = [
        ('Identification', {'fields': ['id', 'owner', 'source_url', 'user_message']}),
        ('Status', {'fields': ['status', 'error_message']}),
        (
            'Media Info',
            {
                'fields': [
                    'media_kind',
                    'source_author',
                    'source_caption',
                    'duration_seconds',
                ]
            },
        ),
        (
            'Files',
            {
                'fields': [
                    'primary_path',
                    'thumbnail_path',
                    'image_paths',
                    'audio_path',
                    'file_size_bytes',
                ]
            },
        ),
        ('Logs & Preview', {'fields': ['log_display', 'preview_display']}),
        ('Timestamps', {'fields': ['created_at', 'expires_at']}),
    ]

    def file_size_display(self, obj):
        if obj.file_size_bytes:
            size_mb = obj.file_size_bytes / (1024 * 1024)
            return f'{size_mb:.2f} MB'
        return '-'

    file_size_display.short_description = 'File Size'

    def favorite_count(self, obj):
        return obj.favorites.count()

    favorite_count.short_description = 'Favorites'

    def preview_display(self, obj):
        if not obj.is_ready or not obj.thumbnail_path:
            return '-'
        return format_html(
            '<img src="{}" width="100%" height="300" alt="Thumbnail" '
            'style="object-fit: contain; border-radius: 4px;">',
            reverse('clip_thumbnail', kwargs={'clip_id': obj.id}),
        )

    preview_display.short_description = 'Preview'

    def log_display(self, obj):
        log_path = obj.get_absolute_log_path()
        if not log_path:
            return 'No log file'

        try:
            with open(log_path, 'r') as f:
                log_content = f.read()
            return format_html(
                '<a name="log"></a><pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; max-height: 400px; overflow: auto;">{}</pre>',
                log_content,
            )
        except OSError as e:
            return f'Error reading log: {e}'

    log_display.short_description = 'Logs'


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ['clip', 'user', 'created_at']
    search_fields = ['clip__id', 'user__username']
    raw_id_fields = ['clip']
