# apps/agenda/views.py

import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from apps.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from apps.core.models import Event, Task
from apps.core.permissions import json_api, token_required
from apps.core.utils import parse_bool, parse_choice, parse_text, parse_when, read_json, serialize_event

logger = logging.getLogger(__name__)


@json_api
@token_required
@require_http_methods(['GET', 'POST'])
def events_view(request):
    if request.method == 'POST':
        return _create_event(request)

    events = Event.objects.filter(user=request.user)
    return JsonResponse([serialize_event(e) for e in events], safe=False)


@json_api
@token_required
@require_http_methods(['PUT', 'DELETE'])
def event_detail_view(request, event_id):
    """
    Update or delete one of the caller's own events
    """
    try:
        event = Event.objects.get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError('Event not found')

    if event.user_id != request.user.pk:
        action = 'delete' if request.method == 'DELETE' else 'update'
        raise AuthorizationError(f'Not authorized to {action} this event')

    if request.method == 'DELETE':
        event.delete()
        return JsonResponse({'message': 'Event deleted successfully'})

    data = read_json(request)

    if 'title' in data:
        title = parse_text(data['title'], 'Title')
        if not title:
            raise ValidationError('Title cannot be empty')
        event.title = title
    if data.get('start') is not None:
        event.start = parse_when(data['start'], 'start')
    if data.get('end') is not None:
        event.end = parse_when(data['end'], 'end')
    if data.get('allDay') is not None:
        event.all_day = parse_bool(data['allDay'])
    if data.get('status') is not None:
        event.status = parse_choice(data['status'], Task.STATUS_CHOICES, 'status')

    _check_range(event)
    event.save()
    return JsonResponse(serialize_event(event))


def _create_event(request):
    data = read_json(request)

    title = parse_text(data.get('title'), 'Title', required=True)

    event = Event(
        title=title,
        start=parse_when(data.get('start'), 'start'),
        end=parse_when(data.get('end'), 'end'),
        all_day=parse_bool(data.get('allDay', False)),
        user=request.user,
    )
    if data.get('status'):
        event.status = parse_choice(data['status'], Task.STATUS_CHOICES, 'status')

    _check_range(event)
    event.save()

    logger.debug(f"📅 Event {event.pk} created by {request.user.pk}")
    return JsonResponse(serialize_event(event), status=201)


def _check_range(event):
    if event.end < event.start:
        raise ValidationError('end must not be before start')
