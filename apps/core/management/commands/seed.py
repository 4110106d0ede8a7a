# apps/core/management/commands/seed.py

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.core.models import Membership, Project, Task, User

DEMO_PASSWORD = 'orgaos123'

DEMO_USERS = [
    ('admin@orgaos.dev', 'Ada Admin', Membership.ADMIN),
    ('editor@orgaos.dev', 'Eddie Editor', Membership.EDITOR),
    ('viewer@orgaos.dev', 'Vera Viewer', Membership.VIEWER),
]

DEMO_TASKS = [
    ('Write project brief', Task.DONE, Task.HIGH),
    ('Design the board layout', Task.IN_PROGRESS, Task.MEDIUM),
    ('Invite the rest of the team', Task.TODO, Task.LOW),
]


class Command(BaseCommand):
    help = 'Creates demo users, a demo project and a few tasks (idempotent)'

    def handle(self, *args, **options):
        self.stdout.write('🌱 Seeding demo data...')

        with transaction.atomic():
            users = self._create_users()
            project = self._create_project(users)
            self._create_tasks(project, users)

        self.stdout.write(self.style.SUCCESS('\n✅ Demo data ready!'))
        for email, _, role in DEMO_USERS:
            self.stdout.write(f'  🔑 {email} / {DEMO_PASSWORD} ({role})')

    def _create_users(self):
        users = []
        for email, display_name, _ in DEMO_USERS:
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email, password=DEMO_PASSWORD, display_name=display_name
                )
                self.stdout.write(f'  👤 User created: {email}')
            users.append(user)
        return users

    def _create_project(self, users):
        owner = users[0]
        project, created = Project.objects.get_or_create(
            name='Demo Project',
            owner=owner,
            defaults={'description': 'A sample project to explore the board'},
        )
        if created:
            self.stdout.write(f'  📁 Project created: {project.name}')

        for user, (_, _, role) in zip(users, DEMO_USERS):
            Membership.objects.get_or_create(
                project=project, user=user, defaults={'role': role}
            )
        return project

    def _create_tasks(self, project, users):
        editor = users[1]
        for title, status, priority in DEMO_TASKS:
            _, created = Task.objects.get_or_create(
                project=project,
                title=title,
                defaults={'status': status, 'priority': priority, 'assignee': editor},
            )
            if created:
                self.stdout.write(f'  📝 Task created: {title}')
