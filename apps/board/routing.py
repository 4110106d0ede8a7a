# apps/board/routing.py

from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
    # Board, membership and invitation events for the connected user
    re_path(r'ws/realtime/$', consumers.RealtimeConsumer.as_asgi()),
]
