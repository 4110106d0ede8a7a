# apps/core/utils.py

import json
from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from typing import Dict, Optional

from .exceptions import ValidationError


# === REQUEST PARSING ===

def read_json(request) -> Dict:
    """Decoded JSON body; an empty body is an empty dict"""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Malformed JSON body')
    if not isinstance(data, dict):
        raise ValidationError('JSON body must be an object')
    return data


def parse_id(value, field: str) -> int:
    """Coerces an id coming from a JSON body ("12" or 12)"""
    if value is None or value == '':
        raise ValidationError(f'{field} is required')
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an id')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an id')


def parse_text(value, field: str, required: bool = False) -> str:
    """Stripped string field; None counts as empty"""
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    value = value.strip()
    if required and not value:
        raise ValidationError(f'{field} is required')
    return value


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    if isinstance(value, (int, float)):
        return bool(value)
    return False


def parse_choice(value, choices, field: str) -> str:
    valid = [key for key, _ in choices]
    if value not in valid:
        raise ValidationError(f"Invalid {field}. Must be one of: {', '.join(valid)}")
    return value


def parse_when(value, field: str) -> datetime:
    """
    Accepts ISO datetimes and plain dates (all-day entries)

    Naive values are interpreted in the current timezone.
    """
    if not value or not isinstance(value, str):
        raise ValidationError(f'{field} is required')

    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise ValidationError(f'{field} must be an ISO date or datetime')
        parsed = datetime.combine(day, time.min)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


# === SERIALIZATION ===

def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_user(user) -> Dict:
    return {
        '_id': user.pk,
        'email': user.email,
        'displayName': user.display_name,
    }


def serialize_project(project, role=None) -> Dict:
    data = {
        '_id': project.pk,
        'name': project.name,
        'description': project.description,
        'owner': project.owner_id,
        'members': [
            {'user': m.user_id, 'role': m.role}
            for m in project.memberships.all()
        ],
        'createdAt': _iso(project.created_at),
        'updatedAt': _iso(project.updated_at),
    }
    if role is not None:
        data['role'] = role
    return data


def serialize_member(membership, project) -> Dict:
    user = membership.user
    is_owner = project.owner_id == user.pk
    return {
        '_id': user.pk,
        'displayName': user.display_name,
        'email': user.email,
        'role': 'Admin' if is_owner else membership.role,
        'isOwner': is_owner,
    }


def serialize_invitation(invitation) -> Dict:
    return {
        '_id': invitation.pk,
        'projectId': invitation.project_id,
        'projectName': invitation.project_name,
        'inviterName': invitation.inviter_name,
        'createdAt': _iso(invitation.created_at),
    }


def serialize_task(task) -> Dict:
    assignee = None
    if task.assignee_id:
        assignee = {
            '_id': task.assignee.pk,
            'displayName': task.assignee.display_name,
            'email': task.assignee.email,
        }
    return {
        '_id': task.pk,
        'title': task.title,
        'description': task.description,
        'status': task.status,
        'priority': task.priority,
        'project': task.project_id,
        'assignee': assignee,
        'createdAt': _iso(task.created_at),
        'updatedAt': _iso(task.updated_at),
    }


def serialize_event(event) -> Dict:
    return {
        '_id': event.pk,
        'title': event.title,
        'start': _iso(event.start),
        'end': _iso(event.end),
        'allDay': event.all_day,
        'status': event.status,
        'user': event.user_id,
    }
