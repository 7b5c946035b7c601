import json

from channels.generic.websocket import AsyncWebsocketConsumer

from .dispatch import user_group


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    Per-user push channel. Each connection joins the user_<id> group and
    relays whatever notify() sends there; the socket is receive-only.
    """

    async def connect(self):
        self.user = self.scope["user"]
        if self.user.is_authenticated:
            self.user_group = user_group(self.user.id)
            await self.channel_layer.group_add(
                self.user_group,
                self.channel_name
            )
            await self.accept()
        else:
            await self.close()

    async def disconnect(self, close_code):
        if hasattr(self, 'user_group'):
            await self.channel_layer.group_discard(
                self.user_group,
                self.channel_name
            )

    async def receive(self, text_data=None, bytes_data=None):
        # Clients only listen; answer pings so they can detect dead sockets
        try:
            data = json.loads(text_data or '{}')
        except json.JSONDecodeError:
            return
        if isinstance(data, dict) and data.get("type") == "ping":
            await self.send(text_data=json.dumps({"type": "pong"}))

    async def notification_message(self, event):
        await self.send(text_data=json.dumps({
            "type": "notification",
            "notification": event["notification"],
        }))
