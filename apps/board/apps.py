# apps/board/apps.py

import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class BoardConfig(AppConfig):
    """Board app - kanban tasks and realtime sync"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.board'
    verbose_name = 'Board - Kanban'

    session_registry = None
    broadcaster = None

    def ready(self):
        """
        Creates the process-wide session registry and broadcaster
        """
        from .realtime import EventBroadcaster, SessionRegistry

        self.session_registry = SessionRegistry()
        self.broadcaster = EventBroadcaster(
            self.session_registry,
            task_scope=settings.ORGAOS_TASK_EVENTS_SCOPE,
        )

        logger.info(f"🔌 Board app ready - task events scope: {settings.ORGAOS_TASK_EVENTS_SCOPE}")
