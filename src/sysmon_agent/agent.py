"""sysmon Agent - fixed-interval sampling loop."""

import asyncio
import logging
import signal
from enum import Enum
from typing import Optional

from .config import AgentConfig
from .exceptions import AgentError, SignalHandlerError
from .sinks import SinkGroup, create_sinks
from .sources import Category, Record, SourceRegistry

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class Agent:
    """
    Host telemetry sampling agent.

    Each tick samples every enabled source and publishes the records to
    every open sink, then sleeps for the configured interval. The run ends
    when a SIGINT/SIGTERM is observed or after `timeout` ticks. Ticks never
    overlap; work that overruns the interval delays the next tick.
    """

    def __init__(
        self,
        config: AgentConfig,
        registry: Optional[SourceRegistry] = None,
        sinks: Optional[SinkGroup] = None,
        handle_signals: bool = True,
    ):
        self.config = config
        self.registry = registry
        self.sinks = sinks
        self.handle_signals = handle_signals
        self.state = AgentState.STARTING
        self.ticks = 0
        self._stop_requested = False
        self._stop_event: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed_signals: list[signal.Signals] = []
        self._previous_handlers: dict = {}

    def setup(self):
        """Validate config, build the registry and open sinks."""
        self.config.validate()

        if self.registry is None:
            self.registry = SourceRegistry.from_config(self.config)
        if self.sinks is None:
            self.sinks = create_sinks(self.config)

        self.sinks.open_all()
        logger.info(
            f"Agent initialized with {len(self.registry)} sources "
            f"and {len(self.sinks)} sinks"
        )

    async def run(self):
        """
        Run the agent until interrupted or timed out.

        Raises:
            ConfigError: invalid configuration, nothing was opened
            SinkOpenError: a sink failed to start; opened sinks were closed
            SinkCloseError: the recording could not be closed cleanly
            SignalHandlerError: SIGINT/SIGTERM handlers could not be installed
        """
        if self.state != AgentState.STARTING:
            raise AgentError(f"Agent cannot run from state {self.state.value}")

        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()

        logger.info("Starting sysmon agent...")
        try:
            if self.handle_signals:
                self._install_signal_handlers()
            self.setup()
            self.state = AgentState.RUNNING
            await self._run_loop()
        finally:
            self.state = AgentState.DRAINING
            try:
                self._drain()
            finally:
                self.state = AgentState.STOPPED
                self._remove_signal_handlers()
                logger.info(f"Agent stopped after {self.ticks} ticks")

    async def _run_loop(self):
        timeout = self.config.timeout
        while not self._stop_requested and (timeout is None or self.ticks < timeout):
            self.tick()
            await self._sleep(self.config.interval_seconds)
            self.ticks += 1

        if self._stop_requested:
            logger.info("Interrupt received, shutting down")
        else:
            logger.info(f"Timeout of {timeout} ticks reached, shutting down")

    def tick(self) -> int:
        """Sample all enabled sources once and publish. Returns deliveries."""
        delivered = 0
        for category, record in self.registry.sample_enabled():
            delivered += self.sinks.publish(category, record)
        logger.debug(f"Tick {self.ticks}: {delivered} records delivered")
        return delivered

    async def _sleep(self, seconds: float):
        """Sleep between ticks, waking early when a stop is requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _drain(self):
        if self.sinks is not None:
            self.sinks.close_all()
        if self.registry is not None:
            self.registry.close()

    def request_stop(self):
        """
        Ask the loop to stop after the current tick.

        Only sets a flag and wakes the inter-tick sleep; safe to call from a
        signal handler and more than once.
        """
        self._stop_requested = True
        if self._stop_event is not None and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._stop_event.set)

    def _install_signal_handlers(self):
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.request_stop)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                try:
                    self._previous_handlers[sig] = signal.signal(
                        sig, lambda signum, frame: self.request_stop()
                    )
                except (ValueError, OSError) as e:
                    self._remove_signal_handlers()
                    raise SignalHandlerError(f"Failed to set {sig.name} handler: {e}") from e
            except (ValueError, RuntimeError) as e:
                self._remove_signal_handlers()
                raise SignalHandlerError(f"Failed to set {sig.name} handler: {e}") from e
            self._installed_signals.append(sig)
        logger.debug("Signal handlers installed")

    def _remove_signal_handlers(self):
        for sig in self._installed_signals:
            try:
                if sig in self._previous_handlers:
                    signal.signal(sig, self._previous_handlers.pop(sig))
                else:
                    self._loop.remove_signal_handler(sig)
            except Exception as e:
                logger.warning(f"Failed to restore {sig.name} handler: {e}")
        self._installed_signals = []

    def collect_once(self) -> list[tuple[Category, Record]]:
        """Sample every enabled source once without opening sinks."""
        if self.registry is None:
            self.registry = SourceRegistry.from_config(self.config)
        return self.registry.sample_enabled()
