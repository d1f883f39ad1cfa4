import json

from channels.generic.websocket import AsyncWebsocketConsumer

from .broadcast import FEED_TOPIC, user_topic


class EventStreamConsumer(AsyncWebsocketConsumer):
    """
    Realtime push channel. Everyone listens to the public feed topic, signed-in
    users additionally receive the events addressed to them.
    """

    async def connect(self):
        self.user = self.scope.get("user")
        self.groups_joined = [FEED_TOPIC]
        if self.user and self.user.is_authenticated:
            self.groups_joined.append(user_topic(self.user.id))

        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        for group in getattr(self, "groups_joined", []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        pass

    async def broadcast(self, event):
        await self.send(json.dumps({"topic": event["topic"], "payload": event["payload"]}))
