# apps/core/urls.py

from django.urls import path
from . import views

app_name = 'core'

# Mounted under /api/
urlpatterns = [
    # === AUTHENTICATION ===
    path('auth/register', views.register_view, name='register'),
    path('auth/login', views.login_view, name='login'),
    path('auth/me', views.me_view, name='me'),

    # === PROJECTS ===
    path('projects', views.projects_view, name='projects'),
    path('projects/<int:project_id>', views.project_detail_view, name='project_detail'),

    # === MEMBERS ===
    path('projects/<int:project_id>/invite', views.invite_member_view, name='invite_member'),
    path('projects/<int:project_id>/members', views.project_members_view, name='project_members'),
    path(
        'projects/<int:project_id>/members/<int:user_id>/role',
        views.update_member_role_view,
        name='update_member_role',
    ),
    path(
        'projects/<int:project_id>/members/<int:user_id>',
        views.remove_member_view,
        name='remove_member',
    ),

    # === INVITATIONS ===
    path('users/invitations', views.my_invitations_view, name='my_invitations'),
    path('users/invitations/respond', views.respond_invitation_view, name='respond_invitation'),
]
