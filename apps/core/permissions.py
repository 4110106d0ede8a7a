# apps/core/permissions.py

import logging
from functools import wraps

from django.conf import settings
from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .exceptions import ApiError, AuthenticationError, AuthorizationError, NotFoundError
from .models import Membership, Project

logger = logging.getLogger(__name__)

# === CAPABILITIES ===

TASK_MUTATE = 'task.mutate'
PROJECT_MANAGE = 'project.manage'

ROLE_CAPABILITIES = {
    Membership.ADMIN: frozenset({TASK_MUTATE, PROJECT_MANAGE}),
    Membership.EDITOR: frozenset({TASK_MUTATE}),
    Membership.VIEWER: frozenset(),
}

VALID_ROLES = tuple(ROLE_CAPABILITIES)


def resolve_role(user_id, project_id):
    """
    Role of ``user_id`` inside ``project_id``

    Returns None both when the project does not exist and when the user is
    not a member; callers that need to tell them apart look the project up
    first (see ``get_project``).

    The owner is always Admin, whatever its membership row says.
    """
    if user_id is None or project_id is None:
        return None
    if Project.objects.filter(pk=project_id, owner_id=user_id).exists():
        return Membership.ADMIN
    return (
        Membership.objects
        .filter(project_id=project_id, user_id=user_id)
        .values_list('role', flat=True)
        .first()
    )


def has_capability(role, capability):
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def get_project(project_id):
    """Fetch a project or raise NotFoundError"""
    try:
        return Project.objects.select_related('owner').get(pk=project_id)
    except Project.DoesNotExist:
        raise NotFoundError('Project not found')


class ProjectPermissions:
    """
    Role checks for project resources

    Admin: everything. Editor: task mutations. Viewer: read only.
    """

    @staticmethod
    def can_mutate(role):
        """Create / update / move / delete tasks"""
        return has_capability(role, TASK_MUTATE)

    @staticmethod
    def can_manage(role):
        """Invite, change roles, remove members, delete the project"""
        return has_capability(role, PROJECT_MANAGE)

    @staticmethod
    def is_member(role):
        return role is not None

    @staticmethod
    def require_member(user, project):
        role = resolve_role(user.pk, project.pk)
        if not ProjectPermissions.is_member(role):
            raise AuthorizationError('You are not a member of this project')
        return role

    @staticmethod
    def require_mutate(user, project):
        role = resolve_role(user.pk, project.pk)
        if not ProjectPermissions.can_mutate(role):
            logger.info(f"⛔ User {user.pk} ({role}) cannot modify tasks of project {project.pk}")
            raise AuthorizationError('Only Editors and Admins can modify tasks')
        return role

    @staticmethod
    def require_manage(user, project):
        role = resolve_role(user.pk, project.pk)
        if not ProjectPermissions.can_manage(role):
            logger.info(f"⛔ User {user.pk} ({role}) cannot manage project {project.pk}")
            raise AuthorizationError('Only Admins can perform this action')
        return role


# === DECORATORS FOR JSON VIEWS ===

def json_api(view_func):
    """
    Turns ApiError into a JSON error response and hides unexpected errors

    Also exempts the view from CSRF: the API authenticates with bearer
    tokens, never with the session cookie.
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ApiError as e:
            _rollback_request()
            return JsonResponse({'message': e.message}, status=e.status_code)
        except Exception as e:
            _rollback_request()
            logger.exception(
                f"❌ Unhandled error in {request.method} {request.path} "
                f"(user={getattr(request.user, 'pk', None)})"
            )
            message = str(e) if settings.DEBUG else 'Internal server error'
            return JsonResponse({'message': message}, status=500)

    return csrf_exempt(wrapped_view)


def _rollback_request():
    """Marks the request transaction (ATOMIC_REQUESTS) for rollback"""
    if transaction.get_connection().in_atomic_block:
        transaction.set_rollback(True)


def token_required(view_func):
    """Requires a valid ``Authorization: Bearer`` token"""

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        token_error = getattr(request, 'token_error', None)
        if token_error:
            raise AuthenticationError(token_error, status_code=403)
        if not getattr(request, 'token_authenticated', False):
            raise AuthenticationError('No token provided')
        return view_func(request, *args, **kwargs)

    return wrapped_view
