import json

from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from portal.services.realtime import notifications_group

# Event name clients listen for; the payload carries no data.
NOTIFICATIONS_UPDATE = "notifications:update"


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """
    Uniform error frame.
    Application codes: 4xxx client errors.
    """
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Push a refresh signal to every open socket of a user."""

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return

        self.group_name = notifications_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if isinstance(data, dict) and data.get("type") == "ping":
            await self.send(json.dumps({"type": "pong"}))
            return
        await _ws_error(self, 4002, "unsupported_type")

    async def notifications_update(self, event):
        # event: {"type": "notifications.update"}
        await self.send(json.dumps({"type": NOTIFICATIONS_UPDATE}))
