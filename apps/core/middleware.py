# apps/core/middleware.py

import logging
import time
import uuid
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from .auth_service import auth_service
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '


class BearerTokenMiddleware:
    """
    Resolves ``Authorization: Bearer <token>`` into ``request.user``

    Never rejects a request by itself: it records the outcome in
    ``request.token_authenticated`` / ``request.token_error`` and lets the
    ``token_required`` decorator decide.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.token_authenticated = False
        request.token_error = None

        header = request.META.get('HTTP_AUTHORIZATION', '')
        if header.startswith(BEARER_PREFIX):
            token = header[len(BEARER_PREFIX):].strip()
            try:
                request.user = auth_service.resolve_token(token)
                request.token_authenticated = True
            except AuthenticationError as e:
                request.token_error = e.message

        return self.get_response(request)


class RequestLogMiddleware:
    """
    One log line per request with status, duration and user

    5xx are logged as errors, 4xx as warnings. The request id comes from
    ``X-Request-ID`` when the client sends one and is echoed back.
    """

    IGNORED_PATHS = ('/health/', '/favicon.ico', '/robots.txt')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.META.get('HTTP_X_REQUEST_ID') or uuid.uuid4().hex
        request.request_id = request_id
        started = time.monotonic()

        response = self.get_response(request)

        response['X-Request-ID'] = request_id
        if request.path in self.IGNORED_PATHS:
            return response

        duration_ms = (time.monotonic() - started) * 1000
        user = getattr(request, 'user', None)
        user_id = user.pk if user is not None and user.is_authenticated else None

        message = (
            f"{request.method} {request.path} - {response.status_code} "
            f"{duration_ms:.0f}ms ({categorize_response_time(duration_ms)}) "
            f"user={user_id} request_id={request_id}"
        )

        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response


def categorize_response_time(ms):
    if ms < 100:
        return 'fast'
    if ms < 500:
        return 'normal'
    if ms < 1000:
        return 'slow'
    return 'very_slow'


# === WEBSOCKET ===

class TokenAuthMiddleware(BaseMiddleware):
    """
    Channels middleware: authenticates a websocket from ``?token=...``

    The token is the only credential: without one, or with a bad one, the
    scope user is AnonymousUser even when a session cookie came along.
    """

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode(errors='ignore'))
        token = query.get('token', [None])[0]

        if token:
            scope['user'] = await self._get_user(token)
        else:
            scope['user'] = AnonymousUser()

        return await super().__call__(scope, receive, send)

    @database_sync_to_async
    def _get_user(self, token):
        try:
            return auth_service.resolve_token(token)
        except AuthenticationError:
            logger.warning("❌ Websocket token rejected")
            return AnonymousUser()
