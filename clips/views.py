import json
import os
from datetime import timezone as dt_timezone
from functools import wraps

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from clips import operations
from clips.delivery import serve_file
from clips.models import Clip, Favorite
from clips.utils import serialize_clip


def api_login_required(view):
    """Reject anonymous API requests with a JSON 401"""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': 'Authentication required'}, status=401)
        return view(request, *args, **kwargs)

    return wrapper


def _not_found(message='Clip not found'):
    return JsonResponse({'error': message}, status=404)


def _request_data(request):
    """Read submission fields from a JSON or form body"""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def _favorited_ids(user):
    return set(Favorite.objects.filter(user=user).values_list('clip_id', flat=True))


def _visible_clip(clip_id, user):
    queryset = operations.get_visibility_filter()(Clip.objects.filter(pk=clip_id), user)
    return queryset.select_related('owner').first()


@csrf_exempt
@api_login_required
@require_http_methods(['GET', 'POST'])
def clips_view(request):
    """
    GET: ready clips from the last ``hours`` hours (default 24).
    POST: submit a link. Body (JSON or form): url (required), message (optional).

    Returns 202 with the processing clip; processing continues in the background.
    """
    if request.method == 'POST':
        data = _request_data(request)
        if data is None:
            return JsonResponse({'error': 'Malformed JSON body', 'code': 'invalid_body'}, status=400)

        try:
            clip = operations.submit_clip(request.user, data.get('url'), data.get('message'))
        except ValidationError as e:
            return JsonResponse({'error': e.messages[0], 'code': e.code}, status=400)

        return JsonResponse(
            {
                'message': 'Clip submitted, processing started',
                'clip': {'id': clip.id, 'status': clip.status},
            },
            status=202,
        )

    hours = request.GET.get('hours')
    if hours is not None:
        try:
            hours = float(hours)
        except ValueError:
            hours = -1
        if hours <= 0:
            return JsonResponse({'error': 'hours must be a positive number'}, status=400)

    clips = operations.list_recent_clips(request.user, hours=hours)
    favorited = _favorited_ids(request.user)
    return JsonResponse(
        {'clips': [serialize_clip(c, request=request, favorited_ids=favorited) for c in clips]}
    )


@api_login_required
@require_http_methods(['GET'])
def check_new_view(request):
    """Count ready clips created after ``since`` (ISO-8601)"""
    raw = (request.GET.get('since') or '').replace(' ', '+')
    since = None
    if raw:
        try:
            since = parse_datetime(raw)
        except ValueError:
            since = None
    if since is None:
        return JsonResponse({'error': 'Missing or invalid parameter: since'}, status=400)
    if timezone.is_naive(since):
        since = timezone.make_aware(since, dt_timezone.utc)

    count = operations.count_new_clips(request.user, since)
    return JsonResponse({'count': count, 'has_new': count > 0})


@api_login_required
@require_http_methods(['GET'])
def favorites_view(request):
    clips = operations.list_favorite_clips(request.user)
    favorited = _favorited_ids(request.user)
    return JsonResponse(
        {'clips': [serialize_clip(c, request=request, favorited_ids=favorited) for c in clips]}
    )


@csrf_exempt
@api_login_required
@require_http_methods(['GET', 'DELETE'])
def clip_detail_view(request, clip_id):
    """GET: clip metadata. DELETE: owner removes the clip immediately."""
    if request.method == 'DELETE':
        try:
            deleted = operations.delete_clip(clip_id, request.user)
        except PermissionDenied:
            return JsonResponse({'error': 'Only the owner can delete this clip'}, status=403)
        if not deleted:
            return _not_found()
        return JsonResponse({'message': 'Clip deleted'})

    clip = _visible_clip(clip_id, request.user)
    if clip is None:
        return _not_found()
    return JsonResponse(serialize_clip(clip, user=request.user, request=request))


@csrf_exempt
@api_login_required
@require_http_methods(['POST', 'DELETE'])
def clip_favorite_view(request, clip_id):
    """POST: keep the clip forever. DELETE: withdraw that request."""
    action = operations.favorite_clip if request.method == 'POST' else operations.unfavorite_clip
    try:
        state = action(clip_id, request.user)
    except Clip.DoesNotExist:
        return _not_found()

    scheduled = state.scheduled_deletion_at
    return JsonResponse(
        {
            'is_favorited': state.is_favorited,
            'scheduled_deletion_at': scheduled.isoformat() if scheduled else None,
        }
    )


def _serve_clip_file(request, path, allow_ranges=False):
    if not path or not os.path.isfile(path):
        return _not_found('File not found')
    return serve_file(request, path, allow_ranges=allow_ranges)


def _ready_clip(clip_id):
    return Clip.objects.ready().filter(pk=clip_id).first()


@require_http_methods(['GET', 'HEAD'])
def clip_stream_view(request, clip_id):
    """Byte-range aware video delivery"""
    clip = _ready_clip(clip_id)
    if clip is None or clip.is_slideshow:
        return _not_found()
    return _serve_clip_file(request, clip.get_absolute_primary_path(), allow_ranges=True)


@require_http_methods(['GET', 'HEAD'])
def clip_thumbnail_view(request, clip_id):
    clip = _ready_clip(clip_id)
    if clip is None:
        return _not_found()
    return _serve_clip_file(request, clip.get_absolute_thumbnail_path())


@require_http_methods(['GET', 'HEAD'])
def clip_image_view(request, clip_id, index):
    clip = _ready_clip(clip_id)
    if clip is None or not clip.is_slideshow:
        return _not_found()
    return _serve_clip_file(request, clip.get_absolute_image_path(index))


@require_http_methods(['GET', 'HEAD'])
def clip_audio_view(request, clip_id):
    clip = _ready_clip(clip_id)
    if clip is None or not clip.is_slideshow:
        return _not_found()
    return _serve_clip_file(request, clip.get_absolute_audio_path())
