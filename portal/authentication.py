"""
Token authentication for HTTP and WebSocket requests.

HTTP requests carry ``Authorization: Token <key>`` and go through DRF's
token authentication.  Browsers and the async client cannot set headers
on a WebSocket handshake, so the socket stack also accepts the same key
as a ``?token=<key>`` query parameter; session-authenticated sockets keep
the user resolved by ``AuthMiddlewareStack``.
"""
from __future__ import annotations

from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'


@database_sync_to_async
def _user_for_token(key: str):
    from rest_framework.authtoken.models import Token

    token = Token.objects.select_related('user').filter(key=key).first()
    if token is None or not token.user.is_active:
        return None
    return token.user


class TokenAuthMiddleware(BaseMiddleware):
    """Resolve ``scope['user']`` from a ``token`` query parameter when present."""

    async def __call__(self, scope, receive, send):
        params = parse_qs((scope.get('query_string') or b'').decode())
        key = (params.get('token') or [None])[0]
        if key:
            user = await _user_for_token(key)
            if user is not None:
                scope = dict(scope, user=user)
        return await super().__call__(scope, receive, send)
