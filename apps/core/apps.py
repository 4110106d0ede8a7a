# apps/core/apps.py

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Core app"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core - Accounts and projects'
