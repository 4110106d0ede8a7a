from http import HTTPStatus

import pytest

from apps.core.models import Invitation, Membership, Project, Task


@pytest.mark.django_db
def test_create_project_makes_creator_admin(api, alice):
    resp = api(alice).post('/api/projects', {'name': 'P', 'description': 'first'})
    assert resp.status_code == HTTPStatus.CREATED
    data = resp.json()
    assert data['name'] == 'P'
    assert data['owner'] == alice.pk
    assert data['role'] == Membership.ADMIN
    assert data['members'] == [{'user': alice.pk, 'role': Membership.ADMIN}]

    project = Project.objects.get(pk=data['_id'])
    assert project.memberships.get().role == Membership.ADMIN


@pytest.mark.django_db
def test_create_project_requires_name(api, alice):
    resp = api(alice).post('/api/projects', {'name': '   '})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json() == {'message': 'Project name is required'}
    assert not Project.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize('payload', [
    {'name': 123},
    {'name': ['Apollo']},
    {'name': 'Apollo', 'description': 5},
])
def test_create_project_rejects_non_string_fields(api, alice, payload):
    resp = api(alice).post('/api/projects', payload)
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert 'must be a string' in resp.json()['message']
    assert not Project.objects.exists()


@pytest.mark.django_db
def test_list_projects_only_where_member(api, alice, bob, project, add_member, make_user):
    other = Project.objects.create(name='Other', owner=bob)
    Membership.objects.create(project=other, user=bob, role=Membership.ADMIN)
    add_member(project, bob, Membership.VIEWER)

    mine = api(alice).get('/api/projects').json()
    assert [p['_id'] for p in mine] == [project.pk]

    bobs = {p['_id']: p['role'] for p in api(bob).get('/api/projects').json()}
    assert bobs == {project.pk: Membership.VIEWER, other.pk: Membership.ADMIN}

    stranger = make_user('stranger@test.com')
    assert api(stranger).get('/api/projects').json() == []


@pytest.mark.django_db
def test_project_detail_requires_membership(api, bob, project):
    resp = api(bob).get(f'/api/projects/{project.pk}')
    assert resp.status_code == HTTPStatus.FORBIDDEN


@pytest.mark.django_db
def test_project_detail_unknown_is_404(api, alice):
    resp = api(alice).get('/api/projects/999')
    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {'message': 'Project not found'}


@pytest.mark.django_db
@pytest.mark.parametrize('role', [Membership.EDITOR, Membership.VIEWER])
def test_delete_project_admin_only(api, bob, project, add_member, role):
    add_member(project, bob, role)
    resp = api(bob).delete(f'/api/projects/{project.pk}')
    assert resp.status_code == HTTPStatus.FORBIDDEN
    assert Project.objects.filter(pk=project.pk).exists()


@pytest.mark.django_db
def test_delete_project_cascades(api, alice, bob, project, add_member, pushed,
                                 django_capture_on_commit_callbacks):
    add_member(project, bob, Membership.EDITOR)
    Task.objects.create(title='t1', project=project)
    Task.objects.create(title='t2', project=project, assignee=bob)
    Invitation.objects.create(user=bob, project=project, project_name='Apollo', inviter_name='Alice')

    with django_capture_on_commit_callbacks(execute=True):
        resp = api(alice).delete(f'/api/projects/{project.pk}')

    assert resp.status_code == HTTPStatus.OK
    assert not Project.objects.filter(pk=project.pk).exists()
    assert not Task.objects.filter(project_id=project.pk).exists()
    assert not Membership.objects.filter(project_id=project.pk).exists()
    assert not Invitation.objects.filter(project_id=project.pk).exists()
    assert pushed.sent == [('project', project.pk, 'projectDeleted', {'projectId': project.pk})]

    # Late board reloads see an empty column set, not an error
    resp = api(alice).get(f'/api/tasks/project/{project.pk}')
    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == []


@pytest.mark.django_db
def test_members_list(api, alice, bob, project, add_member):
    add_member(project, bob, Membership.EDITOR)
    resp = api(bob).get(f'/api/projects/{project.pk}/members')
    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == [
        {'_id': alice.pk, 'displayName': 'Alice', 'email': 'alice@test.com',
         'role': Membership.ADMIN, 'isOwner': True},
        {'_id': bob.pk, 'displayName': 'Bob', 'email': 'bob@test.com',
         'role': Membership.EDITOR, 'isOwner': False},
    ]


@pytest.mark.django_db
def test_members_list_non_member_forbidden(api, carol, project):
    assert api(carol).get(f'/api/projects/{project.pk}/members').status_code == HTTPStatus.FORBIDDEN


# === ROLES ===

@pytest.mark.django_db
def test_admin_updates_member_role(api, alice, bob, project, add_member, pushed,
                                   django_capture_on_commit_callbacks):
    add_member(project, bob, Membership.VIEWER)

    with django_capture_on_commit_callbacks(execute=True):
        resp = api(alice).put(
            f'/api/projects/{project.pk}/members/{bob.pk}/role', {'role': Membership.EDITOR}
        )

    assert resp.status_code == HTTPStatus.OK
    assert resp.json()['member']['role'] == Membership.EDITOR
    assert Membership.objects.get(project=project, user=bob).role == Membership.EDITOR
    assert pushed.sent == [(
        'project', project.pk, 'memberRoleUpdated',
        {'projectId': project.pk, 'userId': bob.pk, 'role': Membership.EDITOR},
    )]


@pytest.mark.django_db
def test_invalid_role_is_rejected_before_lookup(api, carol):
    # Caller is not even a member and the project does not exist
    resp = api(carol).put('/api/projects/999/members/1/role', {'role': 'SuperAdmin'})
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json()['message'].startswith('Invalid role')


@pytest.mark.django_db
def test_editor_cannot_change_roles(api, bob, carol, project, add_member):
    add_member(project, bob, Membership.EDITOR)
    add_member(project, carol, Membership.VIEWER)
    resp = api(bob).put(
        f'/api/projects/{project.pk}/members/{carol.pk}/role', {'role': Membership.ADMIN}
    )
    assert resp.status_code == HTTPStatus.FORBIDDEN
    assert Membership.objects.get(project=project, user=carol).role == Membership.VIEWER


@pytest.mark.django_db
def test_owner_role_is_immutable(api, alice, bob, project, add_member):
    add_member(project, bob, Membership.ADMIN)
    for caller in (alice, bob):
        resp = api(caller).put(
            f'/api/projects/{project.pk}/members/{alice.pk}/role', {'role': Membership.VIEWER}
        )
        assert resp.status_code == HTTPStatus.FORBIDDEN
    assert Membership.objects.get(project=project, user=alice).role == Membership.ADMIN


@pytest.mark.django_db
def test_role_update_unknown_member_is_404(api, alice, carol, project):
    resp = api(alice).put(
        f'/api/projects/{project.pk}/members/{carol.pk}/role', {'role': Membership.EDITOR}
    )
    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {'message': 'Member not found'}


# === REMOVAL ===

@pytest.mark.django_db
def test_admin_removes_member(api, alice, bob, project, add_member, pushed,
                              django_capture_on_commit_callbacks):
    add_member(project, bob, Membership.EDITOR)

    with django_capture_on_commit_callbacks(execute=True):
        resp = api(alice).delete(f'/api/projects/{project.pk}/members/{bob.pk}')

    assert resp.status_code == HTTPStatus.OK
    assert not Membership.objects.filter(project=project, user=bob).exists()
    assert pushed.sent == [
        ('project', project.pk, 'memberRemoved', {'projectId': project.pk, 'userId': bob.pk}),
        ('evict', project.pk, bob.pk, None),
        ('user', bob.pk, 'removedFromProject', {'projectId': project.pk, 'projectName': 'Apollo'}),
    ]


@pytest.mark.django_db
def test_owner_cannot_be_removed(api, alice, bob, project, add_member):
    add_member(project, bob, Membership.ADMIN)
    for caller in (alice, bob):
        resp = api(caller).delete(f'/api/projects/{project.pk}/members/{alice.pk}')
        assert resp.status_code == HTTPStatus.FORBIDDEN
    assert Membership.objects.filter(project=project, user=alice).exists()


@pytest.mark.django_db
def test_viewer_cannot_remove_members(api, bob, carol, project, add_member):
    add_member(project, bob, Membership.VIEWER)
    add_member(project, carol, Membership.VIEWER)
    resp = api(bob).delete(f'/api/projects/{project.pk}/members/{carol.pk}')
    assert resp.status_code == HTTPStatus.FORBIDDEN
    assert Membership.objects.filter(project=project, user=carol).exists()


@pytest.mark.django_db
def test_no_push_when_request_fails(api, bob, project, add_member, pushed,
                                    django_capture_on_commit_callbacks):
    add_member(project, bob, Membership.VIEWER)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        api(bob).delete(f'/api/projects/{project.pk}')
    assert callbacks == []
    assert pushed.sent == []


@pytest.mark.django_db
def test_owner_stays_admin_without_membership_row(api, alice, bob, project, add_member):
    add_member(project, bob, Membership.VIEWER)
    Membership.objects.filter(project=project, user=alice).update(role=Membership.VIEWER)

    [listed] = api(alice).get('/api/projects').json()
    assert listed['role'] == Membership.ADMIN
    members = api(alice).get(f'/api/projects/{project.pk}/members').json()
    assert members[0] == {'_id': alice.pk, 'displayName': 'Alice', 'email': 'alice@test.com',
                          'role': Membership.ADMIN, 'isOwner': True}

    Membership.objects.filter(project=project, user=alice).delete()

    [listed] = api(alice).get('/api/projects').json()
    assert listed['_id'] == project.pk
    assert listed['role'] == Membership.ADMIN
    resp = api(alice).put(f'/api/projects/{project.pk}/members/{bob.pk}/role', {'role': Membership.EDITOR})
    assert resp.status_code == HTTPStatus.OK


@pytest.mark.django_db
def test_admin_save_restores_owner_membership(alice, bob, project, add_member):
    from django.contrib import admin as django_admin
    from django.test import RequestFactory

    add_member(project, bob, Membership.EDITOR)
    Membership.objects.filter(project=project, user=alice).delete()

    model_admin = django_admin.site._registry[Project]
    request = RequestFactory().post('/')

    class Form:
        instance = project

        def save_m2m(self):
            pass

    model_admin.save_related(request, Form(), [], change=True)

    assert Membership.objects.get(project=project, user=alice).role == Membership.ADMIN
