import json

import pytest

from apps.board.realtime import get_broadcaster
from apps.core.auth_service import auth_service
from apps.core.models import Membership, Project, User

from .fakes import RecordingRegistry


class ApiClient:
    """Django test client speaking JSON with an optional bearer token"""

    def __init__(self, client, user=None, token=None):
        self.client = client
        self.user = user
        self.token = token or (auth_service.issue_token(user) if user else None)

    def _extra(self):
        if self.token:
            return {'HTTP_AUTHORIZATION': f'Bearer {self.token}'}
        return {}

    def get(self, path):
        return self.client.get(path, **self._extra())

    def post(self, path, data=None):
        return self._send('post', path, data)

    def put(self, path, data=None):
        return self._send('put', path, data)

    def delete(self, path):
        return self.client.delete(path, **self._extra())

    def _send(self, method, path, data):
        body = json.dumps(data if data is not None else {})
        return getattr(self.client, method)(
            path, data=body, content_type='application/json', **self._extra()
        )


@pytest.fixture
def make_user(db):
    def _make_user(email, password='secret123', display_name=''):
        return User.objects.create_user(email=email, password=password, display_name=display_name)

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user('alice@test.com', display_name='Alice')


@pytest.fixture
def bob(make_user):
    return make_user('bob@test.com', display_name='Bob')


@pytest.fixture
def carol(make_user):
    return make_user('carol@test.com', display_name='Carol')


@pytest.fixture
def project(alice):
    """Project owned by alice, who is its Admin"""
    project = Project.objects.create(name='Apollo', description='Moon shot', owner=alice)
    Membership.objects.create(project=project, user=alice, role=Membership.ADMIN)
    return project


@pytest.fixture
def add_member():
    def _add_member(project, user, role):
        return Membership.objects.create(project=project, user=user, role=role)

    return _add_member


@pytest.fixture
def api(client):
    """api(user) -> authenticated JSON client; api() -> anonymous"""

    def _api(user=None, token=None):
        return ApiClient(client, user=user, token=token)

    return _api


@pytest.fixture
def pushed(monkeypatch):
    """Captures realtime pushes instead of going through the channel layer"""
    registry = RecordingRegistry()
    monkeypatch.setattr(get_broadcaster(), 'registry', registry)
    return registry
