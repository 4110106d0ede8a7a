# apps/core/views.py

import logging

from django.core.cache import cache
from django.db import IntegrityError, connection, transaction
from django.db.models import Prefetch
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_http_methods

from apps.board.realtime import get_broadcaster

from .auth_service import auth_service
from .exceptions import ConflictError, NotFoundError, ValidationError, AuthorizationError
from .models import Invitation, Membership, Project, User
from .permissions import VALID_ROLES, ProjectPermissions, get_project, json_api, token_required
from .utils import (
    parse_bool, parse_id, parse_text, read_json, serialize_invitation, serialize_member,
    serialize_project, serialize_user,
)

logger = logging.getLogger(__name__)


# === AUTHENTICATION ===

@json_api
@require_http_methods(['POST'])
def register_view(request):
    """
    Creates an account - no token required
    """
    user = auth_service.register(read_json(request))
    return JsonResponse(serialize_user(user), status=201)


@json_api
@require_http_methods(['POST'])
def login_view(request):
    """
    Exchanges email/password for a bearer token
    """
    data = read_json(request)
    token = auth_service.login(data.get('email'), data.get('password'))
    return JsonResponse({'token': token})


@json_api
@token_required
@require_http_methods(['GET'])
def me_view(request):
    return JsonResponse(serialize_user(request.user))


# === PROJECTS ===

@json_api
@token_required
@require_http_methods(['GET', 'POST'])
def projects_view(request):
    if request.method == 'POST':
        return _create_project(request)
    return _list_projects(request)


@json_api
@token_required
@require_http_methods(['GET', 'DELETE'])
def project_detail_view(request, project_id):
    project = get_project(project_id)

    if request.method == 'DELETE':
        return _delete_project(request, project)

    role = ProjectPermissions.require_member(request.user, project)
    return JsonResponse(serialize_project(project, role=role))


def _create_project(request):
    """
    The creator becomes owner and sole Admin member
    """
    data = read_json(request)
    name = parse_text(data.get('name'), 'Project name', required=True)

    with transaction.atomic():
        project = Project.objects.create(
            name=name,
            description=parse_text(data.get('description'), 'Description'),
            owner=request.user,
        )
        Membership.objects.create(project=project, user=request.user, role=Membership.ADMIN)

    logger.info(f"📁 Project {project.pk} created by {request.user.pk}")
    return JsonResponse(serialize_project(project, role=Membership.ADMIN), status=201)


def _list_projects(request):
    memberships = Membership.objects.filter(user=request.user)
    roles = dict(memberships.values_list('project_id', 'role'))
    for project_id in request.user.owned_projects.values_list('pk', flat=True):
        roles[project_id] = Membership.ADMIN

    projects = (
        Project.objects
        .filter(pk__in=roles.keys())
        .prefetch_related(Prefetch('memberships', queryset=Membership.objects.order_by('joined_at', 'id')))
    )
    return JsonResponse(
        [serialize_project(p, role=roles.get(p.pk)) for p in projects],
        safe=False,
    )


def _delete_project(request, project):
    """
    Admin only; tasks, memberships and invitations go with the project
    """
    ProjectPermissions.require_manage(request.user, project)

    project_id = project.pk
    project.delete()

    get_broadcaster().project_deleted(project_id)
    logger.info(f"🗑️ Project {project_id} deleted by {request.user.pk}")
    return JsonResponse({'message': 'Project deleted successfully'})


# === MEMBERS ===

@json_api
@token_required
@require_http_methods(['POST'])
def invite_member_view(request, project_id):
    """
    Adds a pending invitation to a registered user

    The invitee has to accept it before becoming a Viewer member.
    """
    project = get_project(project_id)
    ProjectPermissions.require_manage(request.user, project)

    data = read_json(request)
    email = parse_text(data.get('email'), 'Email', required=True)

    invitee = User.objects.filter(email__iexact=email).first()
    if invitee is None:
        raise NotFoundError('User not found')

    if Membership.objects.filter(project=project, user=invitee).exists():
        raise ConflictError('User is already a member of this project')

    if Invitation.objects.filter(project=project, user=invitee).exists():
        raise ConflictError('User has already been invited')

    try:
        with transaction.atomic():
            invitation = Invitation.objects.create(
                user=invitee,
                project=project,
                project_name=project.name,
                inviter_name=request.user.get_display_name(),
            )
    except IntegrityError:
        raise ConflictError('User has already been invited')

    get_broadcaster().new_invitation(invitee.pk, serialize_invitation(invitation))
    logger.info(f"✉️ User {invitee.pk} invited to project {project.pk} by {request.user.pk}")
    return JsonResponse({'message': 'Invitation sent'})


@json_api
@token_required
@require_http_methods(['GET'])
def project_members_view(request, project_id):
    project = get_project(project_id)
    ProjectPermissions.require_member(request.user, project)

    memberships = project.memberships.select_related('user')
    return JsonResponse([serialize_member(m, project) for m in memberships], safe=False)


@json_api
@token_required
@require_http_methods(['PUT'])
def update_member_role_view(request, project_id, user_id):
    """
    Changes a member's role (Admin only)

    The requested role is validated before anything is looked up. The
    owner's role can never be changed, not even by another Admin.
    """
    data = read_json(request)
    role = data.get('role')
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")

    project = get_project(project_id)
    ProjectPermissions.require_manage(request.user, project)

    if project.is_owner(user_id):
        raise AuthorizationError("Cannot change the project owner's role")

    membership = _get_membership(project, user_id)
    membership.role = role
    membership.save(update_fields=['role'])

    get_broadcaster().member_role_updated(project.pk, user_id, role)
    logger.info(f"🔑 User {user_id} is now {role} in project {project.pk}")
    return JsonResponse({
        'message': 'Role updated successfully',
        'member': serialize_member(membership, project),
    })


@json_api
@token_required
@require_http_methods(['DELETE'])
def remove_member_view(request, project_id, user_id):
    """
    Removes a member (Admin only); the owner can never be removed
    """
    project = get_project(project_id)
    ProjectPermissions.require_manage(request.user, project)

    if project.is_owner(user_id):
        raise AuthorizationError('Cannot remove the project owner')

    membership = _get_membership(project, user_id)
    membership.delete()

    broadcaster = get_broadcaster()
    broadcaster.member_removed(project.pk, user_id)
    broadcaster.removed_from_project(user_id, project.pk, project.name)
    logger.info(f"👋 User {user_id} removed from project {project.pk} by {request.user.pk}")
    return JsonResponse({'message': 'Member removed successfully'})


def _get_membership(project, user_id):
    try:
        return project.memberships.select_related('user').get(user_id=user_id)
    except Membership.DoesNotExist:
        raise NotFoundError('Member not found')


# === INVITATIONS ===

@json_api
@token_required
@require_http_methods(['GET'])
def my_invitations_view(request):
    invitations = request.user.invitations.all()
    return JsonResponse([serialize_invitation(i) for i in invitations], safe=False)


@json_api
@token_required
@require_http_methods(['POST'])
def respond_invitation_view(request):
    """
    Accepts or declines a pending invitation

    Accepting adds a Viewer membership; both answers remove the invitation.
    """
    data = read_json(request)
    project_id = parse_id(data.get('projectId'), 'projectId')
    accept = parse_bool(data.get('accept'))

    invitation = request.user.invitations.filter(project_id=project_id).first()
    if invitation is None:
        raise NotFoundError('Invitation not found')

    with transaction.atomic():
        if accept:
            Membership.objects.get_or_create(
                project_id=project_id,
                user=request.user,
                defaults={'role': Membership.VIEWER},
            )
        invitation.delete()

    message = 'Invitation accepted' if accept else 'Invitation declined'
    logger.info(f"✉️ User {request.user.pk}: {message.lower()} (project {project_id})")
    return JsonResponse({'message': message})


# === MONITORING ===

@transaction.non_atomic_requests
@require_http_methods(['GET'])
def health_check(request):
    """
    Health check for load balancers
    """
    components = {'db': {'ok': True}}
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
    except Exception as e:
        logger.error(f"❌ Health check - database unavailable: {e}")
        components['db'] = {'ok': False}

    # Cache (Redis outside dev/test)
    components['cache'] = {'ok': True}
    try:
        cache.set('health_check', 'ok', 60)
        if cache.get('health_check') != 'ok':
            raise RuntimeError('cache read back a different value')
    except Exception as e:
        logger.error(f"❌ Health check - cache unavailable: {e}")
        components['cache'] = {'ok': False}

    healthy = all(c['ok'] for c in components.values())
    if healthy:
        overall = 'ok'
    elif components['db']['ok']:
        overall = 'degraded'
    else:
        overall = 'down'

    return JsonResponse(
        {
            'status': overall,
            'components': components,
            'timestamp': timezone.now().isoformat(),
        },
        status=200 if healthy else 503,
    )
