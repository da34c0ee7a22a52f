import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from clinic.services.push import role_group, user_group

logger = logging.getLogger(__name__)


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """
    Uniform error frame.
    Application codes: 4xxx for client errors, 5xxx for server errors.
    """
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Per-user push channel.

    Each socket joins its user's group and its role's group; events sent
    with ``clinic.services.push.push_event`` arrive as
    ``{"event": ..., "data": ...}`` frames in the order the channel layer
    delivers them.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return

        self.groups_joined = [user_group(user.id)]
        if getattr(user, "role", None):
            self.groups_joined.append(role_group(user.role))
        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"event": "welcome", "data": {"userId": user.id, "role": user.role}}))
        logger.debug("push socket opened for user %s", user.id)

    async def disconnect(self, close_code):
        for group in getattr(self, "groups_joined", []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return
        if data.get("type") == "ping":
            await self.send(json.dumps({"event": "pong", "data": {}}))
            return
        await _ws_error(self, 4002, "unsupported_type")

    async def push_event(self, event):
        # event: {"type": "push.event", "event": "<name>", "data": {...}}
        await self.send(json.dumps({"event": event["event"], "data": event.get("data") or {}}))
