"""
Token authentication for WebSocket connections.

Browsers cannot set an ``Authorization`` header on a WebSocket handshake,
so API clients pass their DRF token as ``?token=<key>``.  A user already
resolved from the session by ``AuthMiddlewareStack`` is left untouched.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.authtoken.models import Token


@database_sync_to_async
def get_token_user(key: str):
    try:
        token = Token.objects.select_related("user").get(key=key)
    except Token.DoesNotExist:
        return AnonymousUser()
    if not token.user.is_active:
        return AnonymousUser()
    return token.user


class TokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        user = scope.get("user")
        if user is None or not user.is_authenticated:
            query = parse_qs(scope.get("query_string", b"").decode())
            key = (query.get("token") or [""])[0]
            if key:
                scope["user"] = await get_token_user(key)
        return await super().__call__(scope, receive, send)
