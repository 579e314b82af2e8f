"""Fan-out of engine messages to websocket connections through the channel layer."""
import logging
from typing import List

from channels.layers import get_channel_layer
from channels import DEFAULT_CHANNEL_LAYER

from .engine import Outbound

logger = logging.getLogger(__name__)


def room_group_name(code: str) -> str:
    return f"room_{code}"


class ChannelLayerPublisher:
    """Sends each outbound message to the room group; consumers filter by audience."""

    def __init__(self, alias: str = DEFAULT_CHANNEL_LAYER):
        self.alias = alias

    async def __call__(self, code: str, outbound: List[Outbound]) -> None:
        layer = get_channel_layer(self.alias)
        if layer is None:
            logger.warning("room=%s no channel layer configured, dropping %d messages", code, len(outbound))
            return
        group = room_group_name(code)
        for item in outbound:
            await layer.group_send(
                group,
                {
                    "type": "room.deliver",
                    "audience": item.audience.to_dict(),
                    "message": item.to_message(),
                },
            )
