# config/asgi.py

import os
from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter

# Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

# Apps must be loaded before importing consumers
django_asgi_app = get_asgi_application()

from apps.board.routing import websocket_urlpatterns  # noqa: E402
from apps.core.middleware import TokenAuthMiddleware  # noqa: E402

application = ProtocolTypeRouter({
    # Plain HTTP (REST API + admin)
    "http": django_asgi_app,

    # WebSocket, authenticated only by ?token=<bearer token>
    "websocket": TokenAuthMiddleware(
        URLRouter(websocket_urlpatterns)
    ),
})
