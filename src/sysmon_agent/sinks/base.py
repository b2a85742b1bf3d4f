"""Base interface for record sinks."""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from ..exceptions import SinkCloseError, SinkOpenError
from ..sources import Category, Record

logger = logging.getLogger(__name__)


class SinkState(str, Enum):
    CREATED = "created"
    ACTIVE = "active"
    CLOSED = "closed"


class Sink(ABC):
    """
    Abstract consumer of published records.

    Lifecycle is Created -> Active -> Closed. `open()` may be called once;
    `close()` closes an open sink exactly once and is a no-op otherwise.
    Publishing never raises. Subclasses set `fatal_close` when a failed close
    means the output may be incomplete.

    Example:
        class StdoutSink(Sink):
            name = "stdout"

            def _open(self): ...
            def _publish(self, category, record): print(category.topic, record)
            def _close(self): ...
    """

    name: str = "sink"
    fatal_close: bool = False

    def __init__(self):
        self.state = SinkState.CREATED

    @property
    def is_open(self) -> bool:
        return self.state == SinkState.ACTIVE

    def open(self):
        """
        Acquire the sink's resources.

        Raises:
            SinkOpenError: if the sink could not be started
        """
        if self.state != SinkState.CREATED:
            raise SinkOpenError(self.name, f"cannot open a sink that is {self.state.value}")
        try:
            self._open()
        except Exception as e:
            self.state = SinkState.CLOSED
            raise SinkOpenError(self.name, f"failed to start: {e}") from e
        self.state = SinkState.ACTIVE
        logger.info(f"Opened sink: {self.name}")

    def publish(self, category: Category, record: Record) -> bool:
        """
        Deliver one record.

        Returns:
            True if the record was accepted
        """
        if not self.is_open:
            logger.warning(f"Dropping {category.topic} record, sink {self.name} is {self.state.value}")
            return False
        try:
            self._publish(category, record)
            return True
        except Exception as e:
            logger.warning(f"Error publishing {category.topic} to {self.name}: {e}")
            return False

    def close(self):
        """
        Flush and release the sink.

        Raises:
            SinkCloseError: if closing failed and the sink has `fatal_close`
        """
        if self.state != SinkState.ACTIVE:
            return
        self.state = SinkState.CLOSED
        try:
            self._close()
        except Exception as e:
            if self.fatal_close:
                raise SinkCloseError(self.name, f"failed to close: {e}") from e
            logger.warning(f"Error closing sink {self.name}: {e}")
            return
        logger.info(f"Closed sink: {self.name}")

    @abstractmethod
    def _open(self):
        pass

    @abstractmethod
    def _publish(self, category: Category, record: Record):
        pass

    @abstractmethod
    def _close(self):
        pass
