# apps/board/consumers.py

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone

from apps.core.permissions import resolve_role

from .realtime import get_session_registry

logger = logging.getLogger(__name__)


class RealtimeConsumer(AsyncWebsocketConsumer):
    """
    Single websocket per client for every realtime event

    Client -> server messages (JSON):
    - {"type": "register", "userId": ...}
    - {"type": "joinProject", "projectId": ...}
    - {"type": "leaveProject", "projectId": ...}
    - {"type": "ping"}

    Server -> client: {"type": <event>, "payload": {...}}
    """

    async def connect(self):
        """
        Accepts authenticated users only and registers the connection
        """
        self.user = self.scope.get('user')
        self.registry = get_session_registry()

        if self.user is None or not self.user.is_authenticated:
            logger.warning("❌ WebSocket rejected - not authenticated")
            await self.close()
            return

        await self.accept()
        await self.registry.connect(self.channel_name)
        await self.registry.register(self.user.pk, self.channel_name)

        logger.info(f"✅ WebSocket connected - user {self.user.pk}")

    async def disconnect(self, close_code):
        if self.user is not None and self.user.is_authenticated:
            await self.registry.disconnect(self.channel_name)
            logger.info(f"🔌 WebSocket disconnected - user {self.user.pk}")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Dispatches client messages by ``type``
        """
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            logger.error(f"❌ Invalid JSON received from user {self.user.pk}")
            await self.send_error('Invalid JSON')
            return

        if not isinstance(data, dict):
            await self.send_error('Message must be an object')
            return

        message_type = data.get('type')

        if message_type == 'ping':
            await self.send_json({'type': 'pong', 'timestamp': timezone.now().isoformat()})

        elif message_type == 'register':
            await self.handle_register(data.get('userId'))

        elif message_type == 'joinProject':
            await self.handle_join_project(data.get('projectId'))

        elif message_type == 'leaveProject':
            await self.handle_leave_project(data.get('projectId'))

        else:
            await self.send_error(f'Unknown message type: {message_type}')

    # === Client message handlers ===

    async def handle_register(self, user_id):
        """Refreshes the user -> connection mapping; only for oneself"""
        if self._as_int(user_id) != self.user.pk:
            await self.send_error('Cannot register as another user')
            return
        await self.registry.register(self.user.pk, self.channel_name)

    async def handle_join_project(self, project_id):
        project_id = self._as_int(project_id)
        if project_id is None:
            await self.send_error('projectId is required')
            return

        role = await database_sync_to_async(resolve_role)(self.user.pk, project_id)
        if role is None:
            logger.warning(f"⛔ User {self.user.pk} tried to join project {project_id} without membership")
            await self.send_error('You are not a member of this project')
            return

        await self.registry.join_project(self.channel_name, project_id)

    async def handle_leave_project(self, project_id):
        project_id = self._as_int(project_id)
        if project_id is None:
            await self.send_error('projectId is required')
            return
        await self.registry.leave_project(self.channel_name, project_id)

    # === Channel layer handlers ===

    async def realtime_event(self, event):
        """Forwards a broadcaster event to the client"""
        await self.send_json({
            'type': event['event'],
            'payload': event['payload'],
        })

    # === Helpers ===

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    async def send_error(self, message):
        await self.send_json({'type': 'error', 'message': message})

    @staticmethod
    def _as_int(value):
        if isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
