"""
URL configuration for clipshare project.

The JSON API lives under /api/clips/. Delivery endpoints (stream, thumbnail,
images, audio) are public; everything else needs a logged-in user.
"""

from django.contrib import admin
from django.urls import path

from clips.views import (
    check_new_view,
    clip_audio_view,
    clip_detail_view,
    clip_favorite_view,
    clip_image_view,
    clip_stream_view,
    clip_thumbnail_view,
    clips_view,
    favorites_view,
)

admin.site.site_header = 'ClipShare Administration'
admin.site.site_title = 'ClipShare site admin'


urlpatterns = [
    path('admin/', admin.site.urls),
    # Authenticated API
    path('api/clips/', clips_view, name='clips'),
    path('api/clips/check', check_new_view, name='clips_check'),
    path('api/clips/favorites', favorites_view, name='clips_favorites'),
    path('api/clips/<str:clip_id>/', clip_detail_view, name='clip_detail'),
    path('api/clips/<str:clip_id>/favorite', clip_favorite_view, name='clip_favorite'),
    # Public delivery (clip ids are unguessable)
    path('api/clips/<str:clip_id>/stream', clip_stream_view, name='clip_stream'),
    path('api/clips/<str:clip_id>/thumbnail', clip_thumbnail_view, name='clip_thumbnail'),
    path('api/clips/<str:clip_id>/images/<int:index>', clip_image_view, name='clip_image'),
    path('api/clips/<str:clip_id>/audio', clip_audio_view, name='clip_audio'),
]
