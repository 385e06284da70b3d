from django.urls import reverse


def build_clip_url(clip, view_name, request=None, **kwargs):
    """
    Build a delivery URL for a clip.

    Args:
        clip: Clip instance
        view_name: URL name of the delivery view (e.g. 'clip_stream')
        request: Optional Django request for absolute URL building
        **kwargs: Extra URL arguments (e.g. index for images)

    Returns:
        str
    """
    url = reverse(view_name, kwargs={'clip_id': clip.id, **kwargs})
    if request:
        return request.build_absolute_uri(url)
    return url


def serialize_clip(clip, user=None, request=None, favorited_ids=None):
    """
    JSON-ready representation of a clip.

    Args:
        clip: Clip instance
        user: Requesting user, for ``is_favorited``
        request: Optional Django request for absolute URLs
        favorited_ids: Optional precomputed set of clip ids the user favorited
    """
    if favorited_ids is not None:
        is_favorited = clip.id in favorited_ids
    elif user is not None and user.is_authenticated:
        is_favorited = clip.favorites.filter(user=user).exists()
    else:
        is_favorited = False

    data = {
        'id': clip.id,
        'owner_id': clip.owner_id,
        'owner_username': clip.owner.get_username(),
        'media_kind': clip.media_kind or None,
        'status': clip.status,
        'duration_seconds': clip.duration_seconds,
        'file_size_bytes': clip.file_size_bytes,
        'source_author': clip.source_author or None,
        'source_caption': clip.source_caption or None,
        'message': clip.user_message or None,
        'created_at': clip.created_at.isoformat(),
        'expires_at': clip.expires_at.isoformat(),
        'is_favorited': is_favorited,
        'thumbnail_url': None,
    }

    if clip.has_error:
        data['error_message'] = clip.error_message

    if not clip.is_ready:
        return data

    if clip.thumbnail_path:
        data['thumbnail_url'] = build_clip_url(clip, 'clip_thumbnail', request)

    if clip.is_slideshow:
        data['image_count'] = len(clip.image_paths)
        data['image_urls'] = [
            build_clip_url(clip, 'clip_image', request, index=index)
            for index in range(len(clip.image_paths))
        ]
        data['audio_url'] = build_clip_url(clip, 'clip_audio', request) if clip.audio_path else None
    else:
        data['stream_url'] = build_clip_url(clip, 'clip_stream', request)

    return data
