"""Record sinks - live feed and durable recording."""

from .base import Sink, SinkState
from .group import SinkGroup
from .mcap import McapRecorderSink
from .websocket import LiveFeedSink

__all__ = [
    "Sink",
    "SinkState",
    "SinkGroup",
    "LiveFeedSink",
    "McapRecorderSink",
    "create_sinks",
]


def create_sinks(config) -> SinkGroup:
    """Build the (unopened) sinks selected by `config.format`."""
    sinks: list[Sink] = []
    if config.format.live:
        sinks.append(LiveFeedSink(
            host=config.host,
            port=config.port,
            server_name=config.server_name,
        ))
    if config.format.durable:
        sinks.append(McapRecorderSink(config.path, overwrite=config.overwrite))
    return SinkGroup(sinks)
