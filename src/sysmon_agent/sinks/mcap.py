"""Durable recorder sink - MCAP file."""

import logging
import os
from pathlib import Path
from typing import Optional

import foxglove

from ..sources import Category, Record
from .base import Sink
from .channels import ChannelSet

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class McapRecorderSink(Sink):
    """
    Append every record to an MCAP file.

    The recording is written to `<path>.partial` and moved to `path` only once
    the writer has closed cleanly, so a run that fails to finish never leaves
    a file under the final name. A failed close is fatal.
    """

    name = "mcap"
    fatal_close = True

    def __init__(self, path: str | Path = "output.mcap", overwrite: bool = False):
        super().__init__()
        self.path = Path(path)
        self.overwrite = overwrite
        self._channels: Optional[ChannelSet] = None
        self._writer = None

    @property
    def partial_path(self) -> Path:
        return self.path.with_name(self.path.name + PARTIAL_SUFFIX)

    def _open(self):
        if self.path.exists():
            if not self.overwrite:
                raise FileExistsError(f"{self.path} already exists")
            logger.info(f"Removing existing recording: {self.path}")
            self.path.unlink()

        self._channels = ChannelSet()
        self._writer = foxglove.open_mcap(
            str(self.partial_path),
            allow_overwrite=True,
            context=self._channels.context,
        )
        logger.info(f"Recording to {self.path}")

    def _publish(self, category: Category, record: Record):
        self._channels.log(category, record)

    def _close(self):
        try:
            self._channels.close()
        except Exception as e:
            logger.warning(f"Error closing recording channels: {e}")
        self._writer.close()
        os.replace(self.partial_path, self.path)
        logger.info(f"Recording saved: {self.path}")
