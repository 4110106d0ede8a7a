# apps/board/views.py

import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.models import Membership, Project, Task
from apps.core.permissions import ProjectPermissions, get_project, json_api, token_required
from apps.core.utils import parse_choice, parse_id, parse_text, read_json, serialize_task

from .realtime import get_broadcaster

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('title', 'description', 'priority', 'status', 'assignee')


@json_api
@token_required
@require_http_methods(['POST'])
def create_task(request):
    """
    Creates a task in a project board

    Only Editors and Admins of the project may create tasks.
    """
    data = read_json(request)

    title = parse_text(data.get('title'), 'Title', required=True)

    project = get_project(parse_id(data.get('projectId'), 'projectId'))
    ProjectPermissions.require_mutate(request.user, project)

    task = Task(
        title=title,
        description=parse_text(data.get('description'), 'Description'),
        project=project,
    )
    if data.get('priority'):
        task.priority = parse_choice(data['priority'], Task.PRIORITY_CHOICES, 'priority')
    if data.get('assignee'):
        task.assignee_id = _member_id(project, data['assignee'])
    task.save()

    payload = serialize_task(_reload(task))
    get_broadcaster().task_created(payload)

    logger.info(f"📝 Task {task.pk} created in project {project.pk} by {request.user.pk}")
    return JsonResponse(payload, status=201)


@json_api
@token_required
@require_http_methods(['GET'])
def project_tasks(request, project_id):
    """
    All tasks of a board, assignee populated

    A deleted project has no tasks left: its board answers with an empty list.
    """
    project = Project.objects.filter(pk=project_id).first()
    if project is None:
        return JsonResponse([], safe=False)
    ProjectPermissions.require_member(request.user, project)

    tasks = Task.objects.filter(project=project).select_related('assignee')
    return JsonResponse([serialize_task(t) for t in tasks], safe=False)


@json_api
@token_required
@require_http_methods(['PUT', 'DELETE'])
def task_detail(request, task_id):
    if request.method == 'DELETE':
        return _delete_task(request, task_id)
    return _update_task(request, task_id)


@json_api
@token_required
@require_http_methods(['PUT'])
def update_task_status(request, task_id):
    """
    Moves a task between columns

    Any transition is allowed; sending the current status again is a no-op
    that still answers 200.
    """
    task = _get_task(task_id)
    ProjectPermissions.require_mutate(request.user, task.project)

    data = read_json(request)
    status = parse_choice(data.get('status'), Task.STATUS_CHOICES, 'status')

    task.status = status
    task.save(update_fields=['status', 'updated_at'])

    payload = serialize_task(task)
    get_broadcaster().task_updated(payload)
    return JsonResponse(payload)


# === HELPERS ===

def _update_task(request, task_id):
    task = _get_task(task_id)
    ProjectPermissions.require_mutate(request.user, task.project)

    data = read_json(request)
    updates = {key: data[key] for key in EDITABLE_FIELDS if key in data}

    if 'title' in updates:
        title = parse_text(updates['title'], 'Title')
        if not title:
            raise ValidationError('Title cannot be empty')
        task.title = title
    if 'description' in updates:
        task.description = parse_text(updates['description'], 'Description')
    if 'priority' in updates:
        task.priority = parse_choice(updates['priority'], Task.PRIORITY_CHOICES, 'priority')
    if 'status' in updates:
        task.status = parse_choice(updates['status'], Task.STATUS_CHOICES, 'status')
    if 'assignee' in updates:
        assignee = updates['assignee']
        task.assignee_id = _member_id(task.project, assignee) if assignee else None

    task.save()

    payload = serialize_task(_reload(task))
    get_broadcaster().task_updated(payload)
    return JsonResponse(payload)


def _delete_task(request, task_id):
    task = _get_task(task_id)
    ProjectPermissions.require_mutate(request.user, task.project)

    project_id = task.project_id
    task.delete()

    get_broadcaster().task_deleted(task_id, project_id)
    logger.info(f"🗑️ Task {task_id} deleted from project {project_id} by {request.user.pk}")
    return JsonResponse({'message': 'Task deleted successfully'})


def _get_task(task_id):
    """Existence is checked before any role check: unknown task is a 404"""
    try:
        return Task.objects.select_related('project', 'assignee').get(pk=task_id)
    except Task.DoesNotExist:
        raise NotFoundError('Task not found')


def _reload(task):
    return Task.objects.select_related('assignee').get(pk=task.pk)


def _member_id(project, value):
    user_id = parse_id(value, 'assignee')
    if not Membership.objects.filter(project=project, user_id=user_id).exists():
        raise ValidationError('Assignee must be a member of the project')
    return user_id
