# apps/core/management/commands/clean_database.py

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.core.models import Event, Invitation, Membership, Project, Task, User


class Command(BaseCommand):
    help = 'Deletes ALL users, projects, memberships, invitations, tasks and events'

    # Children first so PROTECT foreign keys never block a delete
    models = [
        ('Tasks', Task),
        ('Events', Event),
        ('Invitations', Invitation),
        ('Memberships', Membership),
        ('Projects', Project),
        ('Users', User),
    ]

    def add_arguments(self, parser):
        parser.add_argument(
            '--force',
            action='store_true',
            help='Allow running outside DEBUG mode'
        )

    def handle(self, *args, **options):
        if not settings.DEBUG and not options['force']:
            raise CommandError(
                '🚫 BLOCKED: this command only runs in DEBUG mode.\n'
                '   Pass --force to wipe a non-debug database.'
            )

        self.stdout.write(self.style.WARNING('🗑️  Cleaning database...'))

        counts = {}
        with transaction.atomic():
            for label, model in self.models:
                deleted, _ = model.objects.all().delete()
                counts[label] = deleted
                self.stdout.write(f'  🗑️ {label}: {deleted}')

        self.stdout.write(
            self.style.SUCCESS(f'✅ Database clean ({sum(counts.values())} rows removed)')
        )
