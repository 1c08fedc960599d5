"""
Bridge from the ``ws/notifications/`` socket to the in-process bus.

The connection itself is left to the caller: ``pump`` consumes any async
iterable of text frames (for example an open websocket connection) and
publishes ``NotificationsChanged`` for every refresh frame.
"""
from __future__ import annotations

import json
import logging
from typing import AsyncIterable, Union
from urllib.parse import urlencode, urlsplit, urlunsplit

from .config import ClientConfig
from .events import NOTIFICATIONS_UPDATE, NotificationsBus, NotificationsChanged

logger = logging.getLogger(__name__)

SOCKET_PATH = "/ws/notifications/"


class NotificationsSocket:
    def __init__(self, bus: NotificationsBus):
        self.bus = bus

    @staticmethod
    def url(config: ClientConfig) -> str:
        """``ws(s)://`` URL for ``config.base_url``, carrying the API token as a query parameter."""
        parts = urlsplit(config.base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        query = urlencode({"token": config.token}) if config.token else ""
        return urlunsplit((scheme, parts.netloc, parts.path.rstrip("/") + SOCKET_PATH, query, ""))

    def dispatch(self, frame: Union[str, bytes]) -> bool:
        """Publish on the bus if ``frame`` is a refresh signal; returns whether it was."""
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8", errors="replace")
        try:
            message = json.loads(frame)
        except ValueError:
            logger.debug("ignoring non-JSON frame %r", frame[:80])
            return False
        if not isinstance(message, dict) or message.get("type") != NOTIFICATIONS_UPDATE:
            return False
        self.bus.publish(NotificationsChanged())
        return True

    async def pump(self, frames: AsyncIterable[Union[str, bytes]]) -> int:
        count = 0
        async for frame in frames:
            if self.dispatch(frame):
                count += 1
        return count
