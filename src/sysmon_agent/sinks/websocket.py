"""Live feed sink - Foxglove WebSocket server."""

import logging
from typing import Optional

import foxglove

from ..sources import Category, Record
from .base import Sink
from .channels import ChannelSet

logger = logging.getLogger(__name__)


class LiveFeedSink(Sink):
    """
    Broadcast records to any connected Foxglove client.

    Best effort: publishing with no subscribers is not an error, and a
    failing publish or close is logged and otherwise ignored.
    """

    name = "websocket"

    def __init__(self, host: str = "127.0.0.1", port: int = 8765, server_name: str = "sysmon-agent"):
        super().__init__()
        self.host = host
        self.port = port
        self.server_name = server_name
        self._channels: Optional[ChannelSet] = None
        self._server = None

    def _open(self):
        self._channels = ChannelSet()
        self._server = foxglove.start_server(
            name=self.server_name,
            host=self.host,
            port=self.port,
            context=self._channels.context,
        )
        logger.info(f"Live feed listening on ws://{self.host}:{self.port}")

    def _publish(self, category: Category, record: Record):
        self._channels.log(category, record)

    def _close(self):
        try:
            self._channels.close()
        finally:
            self._server.stop()
