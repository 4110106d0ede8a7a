from http import HTTPStatus

import pytest
from django.db import IntegrityError, transaction

from apps.core.models import Invitation, Membership, Project


@pytest.mark.django_db
def test_invite_creates_pending_invitation(api, alice, bob, project, pushed,
                                           django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        resp = api(alice).post(f'/api/projects/{project.pk}/invite', {'email': 'bob@test.com'})

    assert resp.status_code == HTTPStatus.OK
    invitation = Invitation.objects.get(user=bob)
    assert invitation.project_name == 'Apollo'
    assert invitation.inviter_name == 'Alice'
    assert not Membership.objects.filter(project=project, user=bob).exists()

    [(kind, target, event, payload)] = pushed.sent
    assert (kind, target, event) == ('user', bob.pk, 'newInvitation')
    assert payload['projectId'] == project.pk
    assert payload['projectName'] == 'Apollo'


@pytest.mark.django_db
def test_invite_unknown_user_is_404(api, alice, project):
    resp = api(alice).post(f'/api/projects/{project.pk}/invite', {'email': 'ghost@test.com'})
    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {'message': 'User not found'}


@pytest.mark.django_db
def test_invite_unknown_project_is_404(api, alice, bob):
    resp = api(alice).post('/api/projects/999/invite', {'email': 'bob@test.com'})
    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {'message': 'Project not found'}


@pytest.mark.django_db
def test_invite_requires_email(api, alice, project):
    resp = api(alice).post(f'/api/projects/{project.pk}/invite', {})
    assert resp.status_code == HTTPStatus.BAD_REQUEST


@pytest.mark.django_db
@pytest.mark.parametrize('email', [5, ['bob@test.com'], {'address': 'bob@test.com'}])
def test_invite_rejects_non_string_email(api, alice, bob, project, email):
    resp = api(alice).post(f'/api/projects/{project.pk}/invite', {'email': email})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json() == {'message': 'Email must be a string'}
    assert not Invitation.objects.exists()


@pytest.mark.django_db
def test_invite_existing_member_is_400(api, alice, bob, project, add_member):
    add_member(project, bob, Membership.VIEWER)
    resp = api(alice).post(f'/api/projects/{project.pk}/invite', {'email': 'bob@test.com'})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json() == {'message': 'User is already a member of this project'}


@pytest.mark.django_db
def test_invite_twice_is_400(api, alice, bob, project):
    client = api(alice)
    assert client.post(f'/api/projects/{project.pk}/invite', {'email': 'bob@test.com'}).status_code == 200
    resp = client.post(f'/api/projects/{project.pk}/invite', {'email': 'bob@test.com'})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json() == {'message': 'User has already been invited'}
    assert Invitation.objects.filter(user=bob).count() == 1


@pytest.mark.django_db
@pytest.mark.parametrize('role', [Membership.EDITOR, Membership.VIEWER])
def test_only_admin_invites(api, bob, carol, project, add_member, role):
    add_member(project, bob, role)
    resp = api(bob).post(f'/api/projects/{project.pk}/invite', {'email': 'carol@test.com'})
    assert resp.status_code == HTTPStatus.FORBIDDEN
    assert not Invitation.objects.exists()


@pytest.mark.django_db
def test_invitations_to_same_user_from_two_projects_both_persist(api, alice, bob, carol, project):
    """
    Each invitation is its own row, unique per (user, project), so two
    admins inviting the same user at the same time insert two rows and
    never read-modify-write a shared list. Running the requests one after
    the other exercises the same path; only a same-project duplicate can
    collide, see test_duplicate_invitation_row_is_refused.
    """
    other = Project.objects.create(name='Gemini', owner=carol)
    Membership.objects.create(project=other, user=carol, role=Membership.ADMIN)

    api(alice).post(f'/api/projects/{project.pk}/invite', {'email': 'bob@test.com'})
    api(carol).post(f'/api/projects/{other.pk}/invite', {'email': 'bob@test.com'})

    pending = api(bob).get('/api/users/invitations').json()
    assert sorted(i['projectName'] for i in pending) == ['Apollo', 'Gemini']
    assert {i['inviterName'] for i in pending} == {'Alice', 'Carol'}


@pytest.mark.django_db
def test_duplicate_invitation_row_is_refused(bob, project):
    Invitation.objects.create(user=bob, project=project, project_name='Apollo', inviter_name='Alice')
    with pytest.raises(IntegrityError), transaction.atomic():
        Invitation.objects.create(user=bob, project=project, project_name='Apollo', inviter_name='Eve')
    assert Invitation.objects.filter(user=bob).count() == 1


@pytest.mark.django_db
def test_accept_invitation_makes_viewer(api, alice, bob, project):
    Invitation.objects.create(user=bob, project=project, project_name='Apollo', inviter_name='Alice')

    resp = api(bob).post('/api/users/invitations/respond', {'projectId': project.pk, 'accept': True})

    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == {'message': 'Invitation accepted'}
    assert Membership.objects.get(project=project, user=bob).role == Membership.VIEWER
    assert not Invitation.objects.exists()


@pytest.mark.django_db
def test_decline_invitation_only_removes_it(api, bob, project):
    Invitation.objects.create(user=bob, project=project, project_name='Apollo', inviter_name='Alice')

    resp = api(bob).post(
        '/api/users/invitations/respond', {'projectId': str(project.pk), 'accept': False}
    )

    assert resp.json() == {'message': 'Invitation declined'}
    assert not Membership.objects.filter(project=project, user=bob).exists()
    assert not Invitation.objects.exists()


@pytest.mark.django_db
def test_respond_without_invitation_is_404(api, bob, project):
    resp = api(bob).post('/api/users/invitations/respond', {'projectId': project.pk, 'accept': True})
    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {'message': 'Invitation not found'}
    assert not Membership.objects.filter(project=project, user=bob).exists()


@pytest.mark.django_db
def test_register_invite_accept_scenario(api):
    anon = api()
    anon.post('/api/auth/register', {'email': 'a@test.com', 'password': 'secret123', 'displayName': 'A'})
    anon.post('/api/auth/register', {'email': 'b@test.com', 'password': 'secret123', 'displayName': 'B'})

    token_a = anon.post('/api/auth/login', {'email': 'a@test.com', 'password': 'secret123'}).json()['token']
    token_b = anon.post('/api/auth/login', {'email': 'b@test.com', 'password': 'secret123'}).json()['token']
    a, b = api(token=token_a), api(token=token_b)

    created = a.post('/api/projects', {'name': 'P'}).json()
    assert created['role'] == Membership.ADMIN
    project_id = created['_id']

    assert a.post(f'/api/projects/{project_id}/invite', {'email': 'b@test.com'}).status_code == 200

    pending = b.get('/api/users/invitations').json()
    assert [i['projectId'] for i in pending] == [project_id]

    assert b.post('/api/users/invitations/respond', {'projectId': project_id, 'accept': True}).status_code == 200

    members = {m['email']: m['role'] for m in a.get(f'/api/projects/{project_id}/members').json()}
    assert members == {'a@test.com': Membership.ADMIN, 'b@test.com': Membership.VIEWER}

    b_id = next(m['_id'] for m in a.get(f'/api/projects/{project_id}/members').json() if m['email'] == 'b@test.com')
    resp = a.put(f'/api/projects/{project_id}/members/{b_id}/role', {'role': 'SuperAdmin'})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert Membership.objects.get(project_id=project_id, user_id=b_id).role == Membership.VIEWER
