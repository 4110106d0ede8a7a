# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import Event, Invitation, Membership, Project, Task, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for email-identified users"""

    list_display = ['email', 'display_name', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_staff', 'is_active', 'date_joined']
    search_fields = ['email', 'display_name']
    ordering = ['-date_joined']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('display_name', 'first_name', 'last_name')}),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
        ('Dates', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
    )


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    autocomplete_fields = ['user']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Projects with their members inline"""

    list_display = ['name', 'owner', 'members_count', 'tasks_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'description', 'owner__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [MembershipInline]

    def save_related(self, request, form, formsets, change):
        """The owner keeps an Admin membership whatever the inline rows say"""
        super().save_related(request, form, formsets, change)
        project = form.instance
        Membership.objects.update_or_create(
            project=project, user_id=project.owner_id,
            defaults={'role': Membership.ADMIN},
        )

    def members_count(self, obj):
        return obj.memberships.count()

    members_count.short_description = 'Members'

    def tasks_count(self, obj):
        return obj.tasks.count()

    tasks_count.short_description = 'Tasks'


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'project', 'status_badge', 'priority', 'assignee', 'updated_at']
    list_filter = ['status', 'priority', 'project']
    search_fields = ['title', 'description']
    readonly_fields = ['created_at', 'updated_at']

    def status_badge(self, obj):
        """Status with the board column color"""
        colors = {
            Task.TODO: '#6B7280',
            Task.IN_PROGRESS: '#F59E0B',
            Task.DONE: '#10B981',
        }
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}</span>',
            colors.get(obj.status, '#6B7280'), obj.status
        )

    status_badge.short_description = 'Status'


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ['user', 'project_name', 'inviter_name', 'created_at']
    search_fields = ['user__email', 'project_name']


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'start', 'end', 'all_day', 'status']
    list_filter = ['all_day', 'status']
    search_fields = ['title', 'user__email']
