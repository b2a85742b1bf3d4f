"""Fan-out over the configured sinks."""

import logging
from typing import Iterable, Optional

from ..exceptions import SinkCloseError
from ..sources import Category, Record
from .base import Sink

logger = logging.getLogger(__name__)


class SinkGroup:
    """
    Zero or more sinks handled as one.

    Sinks are opened and published to in the given order (live feed first).
    On close, sinks whose close can fail the run go last so their output
    reflects everything published before shutdown.
    """

    def __init__(self, sinks: Iterable[Sink]):
        self.sinks = list(sinks)

    def __iter__(self):
        return iter(self.sinks)

    def __len__(self) -> int:
        return len(self.sinks)

    @property
    def open_sinks(self) -> list[Sink]:
        return [s for s in self.sinks if s.is_open]

    def open_all(self):
        """
        Open every sink in order.

        If one fails, the sinks already opened are closed before the error is
        re-raised.
        """
        for sink in self.sinks:
            try:
                sink.open()
            except Exception:
                logger.error(f"Failed to open sink {sink.name}, closing already opened sinks")
                self.close_all()
                raise

    def publish(self, category: Category, record: Record) -> int:
        """Deliver one record to every open sink. Returns the delivery count."""
        return sum(1 for sink in self.open_sinks if sink.publish(category, record))

    def close_all(self):
        """
        Close every open sink, fatal-close sinks last.

        Every sink is closed even when an earlier one fails; the first fatal
        error is re-raised afterwards.
        """
        error: Optional[SinkCloseError] = None
        for sink in sorted(self.sinks, key=lambda s: s.fatal_close):
            try:
                sink.close()
            except SinkCloseError as e:
                logger.error(str(e))
                error = error or e
        if error is not None:
            raise error
