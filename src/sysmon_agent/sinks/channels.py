"""Per-sink Foxglove channels."""

import logging

import foxglove

from ..sources import Category, Record

logger = logging.getLogger(__name__)


class ChannelSet:
    """
    Foxglove channels bound to one logging context.

    Each sink owns its own context so a record logged for one sink is never
    seen by another. Channels are created on first use, one per topic, with
    the record's JSON schema.
    """

    def __init__(self):
        self.context = foxglove.Context()
        self._channels: dict[Category, foxglove.Channel] = {}

    def log(self, category: Category, record: Record):
        self.channel(category).log(record.to_dict())

    def channel(self, category: Category) -> foxglove.Channel:
        channel = self._channels.get(category)
        if channel is None:
            channel = foxglove.Channel(
                category.topic,
                schema=category.record_type.model_json_schema(),
                message_encoding="json",
                context=self.context,
            )
            self._channels[category] = channel
            logger.debug(f"Created channel {category.topic}")
        return channel

    def close(self):
        for channel in self._channels.values():
            channel.close()
        self._channels.clear()
