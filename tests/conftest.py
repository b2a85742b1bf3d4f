"""Shared fixtures and fakes for the sysmon-agent test suite."""

from collections import namedtuple

import pytest

from sysmon_agent.config import AgentConfig
from sysmon_agent.sinks import Sink
from sysmon_agent.sources import Providers
from sysmon_agent.sources.providers import (
    CpuCore,
    Disk,
    DiskUsage,
    NetworkData,
    ProcessInfo,
    Sensor,
)

Vmem = namedtuple("Vmem", ["total", "available", "used"])
Swap = namedtuple("Swap", ["total", "used"])


# ============================================================================
# Fake provider handles
# ============================================================================


class FakeSystemInfo:
    """Stands in for SystemInfo; counts refreshes."""

    def __init__(self):
        self.refreshes = {"cpu": 0, "memory": 0, "processes": 0}
        self.usage = 12.5
        self.cores = [CpuCore(10.0, 2400, "GenuineIntel", "Test CPU"), CpuCore(15.0, 2400, "GenuineIntel", "Test CPU")]
        self.physical = 2
        self.memory = Vmem(total=8 * 1024 ** 3, available=4 * 1024 ** 3, used=3 * 1024 ** 3)
        self.swap = Swap(total=2 * 1024 ** 3, used=1024 ** 2)
        self.procs = [
            ProcessInfo(1, None, "init", "sleeping", 0.0, 4096 * 1024, 1000, 50),
            ProcessInfo(42, 1, "worker", "running", 25.0, 2048, 1010, 40),
        ]

    def refresh_cpu_all(self):
        self.refreshes["cpu"] += 1

    def global_cpu_usage(self):
        return self.usage

    def physical_core_count(self):
        return self.physical

    def cpus(self):
        return self.cores

    def refresh_memory(self):
        self.refreshes["memory"] += 1

    def total_memory(self):
        return self.memory.total

    def available_memory(self):
        return self.memory.available

    def used_memory(self):
        return self.memory.used

    def total_swap(self):
        return self.swap.total

    def used_swap(self):
        return self.swap.used

    def refresh_processes(self):
        self.refreshes["processes"] += 1

    def processes(self):
        return self.procs


class FakeComponents:
    def __init__(self, sensors=None):
        self.sensors = sensors if sensors is not None else [Sensor("coretemp Package id 0", 45.0)]
        self.refreshes = 0

    def refresh(self):
        self.refreshes += 1

    def __iter__(self):
        return iter(self.sensors)


class FakeDisks:
    def __init__(self):
        self.disks = [Disk("/dev/sda1", "/", DiskUsage(10 * 1024, 20 * 1024, 1024, 2048))]
        self.refreshes = 0

    def refresh(self):
        self.refreshes += 1

    def __iter__(self):
        return iter(self.disks)


class FakeNetworks:
    def __init__(self):
        self.networks = {"eth0": NetworkData("aa:bb:cc:dd:ee:ff", 100, 50, 1000, 500)}
        self.refreshes = 0

    def refresh(self):
        self.refreshes += 1

    def items(self):
        return self.networks.items()


class FakeIdentity:
    def __init__(self):
        self.name = "Ubuntu"
        self.kernel_version = "6.8.0"
        self.os_version = "24.04"
        self.os_long_version = None
        self.host_name = "testhost"
        self.kernel = "6.8.0"
        self.boot_time = 1_700_000_000

    def uptime(self):
        return 3600

    def load_average(self):
        return (0.5, 0.25, 0.125)


class CountingFactory:
    """Factory wrapper that records how many handles it created."""

    def __init__(self, factory):
        self.factory = factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.factory()


@pytest.fixture
def fake_providers():
    """Providers bundle backed entirely by fakes, with creation counters."""
    factories = {
        "system_info": CountingFactory(FakeSystemInfo),
        "components": CountingFactory(FakeComponents),
        "disks": CountingFactory(FakeDisks),
        "networks": CountingFactory(FakeNetworks),
        "identity": CountingFactory(FakeIdentity),
    }
    providers = Providers(**factories)
    providers.factories = factories
    return providers


# ============================================================================
# Sinks
# ============================================================================


class RecordingSink(Sink):
    """Sink that keeps everything it is given, and a shared event log."""

    def __init__(self, name="recording", events=None, fatal_close=False,
                 fail_open=False, fail_publish=False, fail_close=False):
        super().__init__()
        self.name = name
        self.fatal_close = fatal_close
        self.events = events if events is not None else []
        self.fail_open = fail_open
        self.fail_publish = fail_publish
        self.fail_close = fail_close
        self.records = []
        self.open_calls = 0
        self.close_calls = 0

    def _open(self):
        self.open_calls += 1
        self.events.append(("open", self.name))
        if self.fail_open:
            raise OSError("address already in use")

    def _publish(self, category, record):
        self.events.append(("publish", self.name, category.topic))
        if self.fail_publish:
            raise RuntimeError("no subscribers")
        self.records.append((category.topic, record))

    def _close(self):
        self.close_calls += 1
        self.events.append(("close", self.name))
        if self.fail_close:
            raise OSError("disk full")

    def topics(self):
        return [topic for topic, _ in self.records]


@pytest.fixture
def events():
    return []


@pytest.fixture
def config_factory(tmp_path):
    """Build an AgentConfig writing into a temporary directory."""

    def _make(**overrides):
        values = {"path": tmp_path / "output.mcap", "interval": 10}
        values.update(overrides)
        return AgentConfig(**values)

    return _make
