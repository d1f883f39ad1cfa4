import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

logger = logging.getLogger(__name__)

FEED_TOPIC = "feed"


def user_topic(user_id) -> str:
    return f"user_{user_id}"


class ChannelsBroadcaster:
    """Publishes realtime events to a Channels group named after the topic."""

    def __init__(self, layer_alias=None):
        self.layer_alias = layer_alias

    def publish(self, topic: str, payload: dict):
        try:
            channel_layer = get_channel_layer(self.layer_alias) if self.layer_alias else get_channel_layer()
            if channel_layer:
                async_to_sync(channel_layer.group_send)(
                    topic,
                    {"type": "broadcast", "topic": topic, "payload": payload}
                )
        except Exception as e:
            logger.error(f"Error publishing realtime event to {topic}: {e}")


def publish_on_commit(broadcaster, topic: str, payload: dict):
    transaction.on_commit(lambda: broadcaster.publish(topic, payload))
