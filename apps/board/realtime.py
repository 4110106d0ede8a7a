# apps/board/realtime.py

"""
Realtime fan-out: session registry + event broadcaster

One SessionRegistry and one EventBroadcaster exist per process; both are
created in ``BoardConfig.ready()`` and reached through
``get_session_registry()`` / ``get_broadcaster()``.

Groups on the channel layer:
- ``user_<id>``     every live connection of a user
- ``project_<id>``  connections that joined a project board
- ``broadcast``     every connection (unscoped task events)
"""

import logging
import threading
from collections import defaultdict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer, DEFAULT_CHANNEL_LAYER
from django.apps import apps
from django.db import transaction

logger = logging.getLogger(__name__)

MESSAGE_TYPE = 'realtime.event'
BROADCAST_GROUP = 'broadcast'

TASK_SCOPE_PROJECT = 'project'
TASK_SCOPE_GLOBAL = 'global'

# === EVENT NAMES ===

TASK_CREATED = 'taskCreated'
TASK_UPDATED = 'taskUpdated'
TASK_DELETED = 'taskDeleted'
MEMBER_ROLE_UPDATED = 'memberRoleUpdated'
MEMBER_REMOVED = 'memberRemoved'
PROJECT_DELETED = 'projectDeleted'
NEW_INVITATION = 'newInvitation'
REMOVED_FROM_PROJECT = 'removedFromProject'


def group_for_user(user_id):
    return f'user_{int(user_id)}'


def group_for_project(project_id):
    return f'project_{int(project_id)}'


class SessionRegistry:
    """
    Live connections of this process

    Keeps user -> channels and channel -> rooms maps in memory and mirrors
    every change onto the channel layer groups. The maps are touched from
    the consumers' event loop and from sync views' threads, hence the lock.
    """

    def __init__(self, channel_layer_alias=DEFAULT_CHANNEL_LAYER):
        self._alias = channel_layer_alias
        self._lock = threading.Lock()
        self._user_channels = defaultdict(set)
        self._channel_user = {}
        self._channel_rooms = defaultdict(set)

    @property
    def channel_layer(self):
        return get_channel_layer(self._alias)

    # === CONNECTION LIFECYCLE ===

    async def connect(self, channel_name):
        """Every connection listens to unscoped broadcasts"""
        await self.channel_layer.group_add(BROADCAST_GROUP, channel_name)

    async def register(self, user_id, channel_name):
        with self._lock:
            previous = self._channel_user.get(channel_name)
            if previous is not None and previous != user_id:
                self._user_channels[previous].discard(channel_name)
            self._channel_user[channel_name] = user_id
            self._user_channels[user_id].add(channel_name)

        if previous is not None and previous != user_id:
            await self.channel_layer.group_discard(group_for_user(previous), channel_name)
        await self.channel_layer.group_add(group_for_user(user_id), channel_name)
        logger.debug(f"🔌 Channel {channel_name} registered for user {user_id}")

    async def join_project(self, channel_name, project_id):
        with self._lock:
            self._channel_rooms[channel_name].add(int(project_id))
        await self.channel_layer.group_add(group_for_project(project_id), channel_name)

    async def leave_project(self, channel_name, project_id):
        with self._lock:
            self._channel_rooms[channel_name].discard(int(project_id))
        await self.channel_layer.group_discard(group_for_project(project_id), channel_name)

    async def disconnect(self, channel_name):
        with self._lock:
            user_id = self._channel_user.pop(channel_name, None)
            if user_id is not None:
                channels = self._user_channels.get(user_id)
                if channels is not None:
                    channels.discard(channel_name)
                    if not channels:
                        del self._user_channels[user_id]
            rooms = self._channel_rooms.pop(channel_name, set())

        layer = self.channel_layer
        await layer.group_discard(BROADCAST_GROUP, channel_name)
        if user_id is not None:
            await layer.group_discard(group_for_user(user_id), channel_name)
        for project_id in rooms:
            await layer.group_discard(group_for_project(project_id), channel_name)

    async def evict_from_project(self, user_id, project_id):
        """Drops every connection of a user from a project room"""
        project_id = int(project_id)
        with self._lock:
            channels = [
                name for name in self._user_channels.get(user_id, ())
                if project_id in self._channel_rooms.get(name, ())
            ]
            for name in channels:
                self._channel_rooms[name].discard(project_id)

        for name in channels:
            await self.channel_layer.group_discard(group_for_project(project_id), name)

    # === LOOKUPS ===

    def channels_for(self, user_id):
        with self._lock:
            return set(self._user_channels.get(user_id, ()))

    def rooms_for(self, channel_name):
        with self._lock:
            return set(self._channel_rooms.get(channel_name, ()))

    def user_for(self, channel_name):
        with self._lock:
            return self._channel_user.get(channel_name)

    def is_online(self, user_id):
        return bool(self.channels_for(user_id))

    # === DELIVERY ===

    async def emit(self, group, event, payload):
        await self.channel_layer.group_send(group, {
            'type': MESSAGE_TYPE,
            'event': event,
            'payload': payload,
        })

    async def emit_to_user(self, user_id, event, payload):
        await self.emit(group_for_user(user_id), event, payload)

    async def emit_to_project(self, project_id, event, payload):
        await self.emit(group_for_project(project_id), event, payload)

    async def emit_to_all(self, event, payload):
        await self.emit(BROADCAST_GROUP, event, payload)


class EventBroadcaster:
    """
    Pushes change notifications after a successful mutation

    Every send is deferred to ``transaction.on_commit``: nothing is pushed
    for state that was rolled back. Delivery is best-effort; failures are
    logged and never reach the HTTP caller.
    """

    def __init__(self, registry, task_scope=TASK_SCOPE_PROJECT):
        self.registry = registry
        self.task_scope = task_scope

    # === TASKS ===

    def task_created(self, task_data):
        self._emit_task(TASK_CREATED, task_data['project'], task_data)

    def task_updated(self, task_data):
        self._emit_task(TASK_UPDATED, task_data['project'], task_data)

    def task_deleted(self, task_id, project_id):
        self._emit_task(TASK_DELETED, project_id, {'taskId': task_id, 'projectId': project_id})

    # === PROJECT ROOM ===

    def member_role_updated(self, project_id, user_id, role):
        payload = {'projectId': project_id, 'userId': user_id, 'role': role}
        self._on_commit(self.registry.emit_to_project, project_id, MEMBER_ROLE_UPDATED, payload)

    def member_removed(self, project_id, user_id):
        """Tells the room, then drops the removed user's connections from it"""
        self._on_commit(
            self.registry.emit_to_project, project_id, MEMBER_REMOVED,
            {'projectId': project_id, 'userId': user_id},
        )
        self._on_commit(self.registry.evict_from_project, user_id, project_id)

    def project_deleted(self, project_id):
        self._on_commit(
            self.registry.emit_to_project, project_id, PROJECT_DELETED, {'projectId': project_id}
        )

    # === USER TARGETED ===

    def new_invitation(self, user_id, invitation_data):
        self._on_commit(self.registry.emit_to_user, user_id, NEW_INVITATION, invitation_data)

    def removed_from_project(self, user_id, project_id, project_name):
        self._on_commit(
            self.registry.emit_to_user, user_id, REMOVED_FROM_PROJECT,
            {'projectId': project_id, 'projectName': project_name},
        )

    # === INTERNALS ===

    def _emit_task(self, event, project_id, payload):
        if self.task_scope == TASK_SCOPE_GLOBAL:
            self._on_commit(self.registry.emit_to_all, event, payload)
        else:
            self._on_commit(self.registry.emit_to_project, project_id, event, payload)

    def _on_commit(self, coroutine_function, *args):
        transaction.on_commit(lambda: self._send(coroutine_function, *args))

    def _send(self, coroutine_function, *args):
        if self.registry.channel_layer is None:
            logger.debug("Channel layer not configured - realtime event dropped")
            return
        try:
            async_to_sync(coroutine_function)(*args)
        except Exception:
            logger.exception(f"❌ Realtime delivery failed: {coroutine_function.__name__}{args[:2]}")


def get_session_registry():
    return apps.get_app_config('board').session_registry


def get_broadcaster():
    return apps.get_app_config('board').broadcaster
