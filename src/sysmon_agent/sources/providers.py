"""Long-lived provider handles over psutil.

Every handle follows refresh-then-read: `refresh()` re-queries the OS and
updates the handle in place, and the accessors read what the last refresh
saw. Disk and network handles keep the previous counters so they can report
what changed since the last refresh; they refresh once on construction, so
the first sample reports deltas since the handle was created.
"""

import logging
import os
import platform
import socket
import time
from collections import namedtuple
from typing import Callable, Iterator, Optional

import psutil

logger = logging.getLogger(__name__)

CpuCore = namedtuple("CpuCore", ["usage", "frequency_mhz", "vendor_id", "brand"])
ProcessInfo = namedtuple(
    "ProcessInfo",
    ["pid", "parent_pid", "name", "status", "cpu_usage", "memory_bytes", "start_time", "run_time"],
)
Sensor = namedtuple("Sensor", ["label", "temperature"])
DiskUsage = namedtuple(
    "DiskUsage", ["total_read_bytes", "total_written_bytes", "read_bytes", "written_bytes"]
)
Disk = namedtuple("Disk", ["name", "mount_point", "usage"])
NetworkData = namedtuple(
    "NetworkData",
    ["mac_address", "received", "transmitted", "total_received", "total_transmitted"],
)

DEFAULT_MAC = "00:00:00:00:00:00"
_PROCESS_ATTRS = ["pid", "ppid", "name", "status", "cpu_percent", "memory_info", "create_time"]


def _delta(current: int, previous: Optional[int]) -> int:
    """Change since the previous refresh; counter resets report 0."""
    if previous is None:
        return 0
    return max(0, current - previous)


def _read_cpu_identity() -> tuple[str, str]:
    vendor, brand = "", ""
    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                key, _, value = line.partition(":")
                key = key.strip()
                if key == "vendor_id" and not vendor:
                    vendor = value.strip()
                elif key == "model name" and not brand:
                    brand = value.strip()
                if vendor and brand:
                    break
    except OSError:
        logger.debug("/proc/cpuinfo not readable, using platform.processor()")
    return vendor, brand or platform.processor()


class SystemInfo:
    """
    Shared handle for CPU, memory and process counters.

    CPU, memory and process sources all read through one instance, the way
    they share one OS query source.
    """

    def __init__(self):
        self._vendor_id, self._brand = _read_cpu_identity()
        self._global_usage = 0.0
        self._per_cpu: list[float] = []
        self._frequencies: list[float] = []
        self._memory = None
        self._swap = None
        self._processes: list[ProcessInfo] = []

        # cpu_percent(interval=None) measures against the previous call
        psutil.cpu_percent(interval=None)
        psutil.cpu_percent(interval=None, percpu=True)

    # CPU

    def refresh_cpu_all(self):
        self._global_usage = psutil.cpu_percent(interval=None)
        self._per_cpu = psutil.cpu_percent(interval=None, percpu=True)
        self._frequencies = self._read_frequencies()

    def _read_frequencies(self) -> list[float]:
        if not hasattr(psutil, "cpu_freq"):
            return []
        try:
            freqs = psutil.cpu_freq(percpu=True) or []
        except (OSError, NotImplementedError) as e:
            logger.debug(f"CPU frequency not available: {e}")
            return []
        return [float(f.current) if f and f.current else 0.0 for f in freqs]

    def global_cpu_usage(self) -> float:
        return self._global_usage

    def physical_core_count(self) -> Optional[int]:
        return psutil.cpu_count(logical=False)

    def cpus(self) -> list[CpuCore]:
        freqs = self._frequencies
        cores = []
        for i, usage in enumerate(self._per_cpu):
            if len(freqs) == len(self._per_cpu):
                freq = freqs[i]
            elif len(freqs) == 1:
                freq = freqs[0]
            else:
                freq = 0.0
            cores.append(CpuCore(usage, int(freq), self._vendor_id, self._brand))
        return cores

    # Memory

    def refresh_memory(self):
        self._memory = psutil.virtual_memory()
        self._swap = psutil.swap_memory()

    def total_memory(self) -> int:
        return self._memory.total

    def available_memory(self) -> int:
        return self._memory.available

    def used_memory(self) -> int:
        return self._memory.used

    def total_swap(self) -> int:
        return self._swap.total

    def used_swap(self) -> int:
        return self._swap.used

    # Processes

    def refresh_processes(self):
        """
        Re-read the full process table.

        psutil caches Process instances across process_iter() calls, which is
        what makes per-process cpu_percent a delta between refreshes.
        """
        now = time.time()
        processes = []
        for proc in psutil.process_iter(_PROCESS_ATTRS):
            info = proc.info
            memory = info.get("memory_info")
            created = info.get("create_time")
            processes.append(ProcessInfo(
                pid=info["pid"],
                parent_pid=info.get("ppid") or None,
                name=info.get("name"),
                status=info.get("status"),
                cpu_usage=info.get("cpu_percent") or 0.0,
                memory_bytes=memory.rss if memory else 0,
                start_time=int(created) if created else 0,
                run_time=max(0, int(now - created)) if created else 0,
            ))
        self._processes = processes

    def processes(self) -> list[ProcessInfo]:
        return self._processes


class Components:
    """Thermal sensors, as reported by psutil.sensors_temperatures()."""

    def __init__(self):
        self._sensors: list[Sensor] = []
        self.refresh()

    def refresh(self):
        if not hasattr(psutil, "sensors_temperatures"):
            self._sensors = []
            return
        sensors = []
        for chip, entries in (psutil.sensors_temperatures(fahrenheit=False) or {}).items():
            for entry in entries:
                label = f"{chip} {entry.label}" if entry.label else chip
                sensors.append(Sensor(label, entry.current))
        self._sensors = sensors

    def __iter__(self) -> Iterator[Sensor]:
        return iter(self._sensors)


class Disks:
    """Mounted partitions joined with their per-device I/O counters."""

    def __init__(self):
        self._disks: list[Disk] = []
        self._previous: dict[str, tuple[int, int]] = {}
        self.refresh()

    def refresh(self):
        counters = psutil.disk_io_counters(perdisk=True) or {}
        disks = []
        for partition in psutil.disk_partitions(all=False):
            key = os.path.basename(os.path.realpath(partition.device))
            io = counters.get(key)
            if io is None:
                usage = DiskUsage(0, 0, 0, 0)
            else:
                prev_read, prev_written = self._previous.get(key, (None, None))
                usage = DiskUsage(
                    total_read_bytes=io.read_bytes,
                    total_written_bytes=io.write_bytes,
                    read_bytes=_delta(io.read_bytes, prev_read),
                    written_bytes=_delta(io.write_bytes, prev_written),
                )
            disks.append(Disk(partition.device, partition.mountpoint, usage))
        self._disks = disks
        self._previous = {
            name: (io.read_bytes, io.write_bytes) for name, io in counters.items()
        }

    def __iter__(self) -> Iterator[Disk]:
        return iter(self._disks)


class Networks:
    """Per-interface traffic counters."""

    def __init__(self):
        self._networks: dict[str, NetworkData] = {}
        self._previous: dict[str, tuple[int, int]] = {}
        self.refresh()

    def refresh(self):
        counters = psutil.net_io_counters(pernic=True) or {}
        macs = self._read_mac_addresses()
        networks = {}
        for name, io in counters.items():
            prev_recv, prev_sent = self._previous.get(name, (None, None))
            networks[name] = NetworkData(
                mac_address=macs.get(name, DEFAULT_MAC),
                received=_delta(io.bytes_recv, prev_recv),
                transmitted=_delta(io.bytes_sent, prev_sent),
                total_received=io.bytes_recv,
                total_transmitted=io.bytes_sent,
            )
        self._networks = networks
        self._previous = {
            name: (io.bytes_recv, io.bytes_sent) for name, io in counters.items()
        }

    def _read_mac_addresses(self) -> dict[str, str]:
        link_family = getattr(psutil, "AF_LINK", None)
        macs = {}
        try:
            addrs = psutil.net_if_addrs()
        except OSError as e:
            logger.debug(f"Interface addresses not available: {e}")
            return macs
        for name, addr_list in addrs.items():
            for addr in addr_list:
                if addr.family == link_family and addr.address:
                    macs[name] = addr.address
                    break
        return macs

    def items(self):
        return self._networks.items()


def _safe(fn: Callable[[], Optional[str]]) -> Optional[str]:
    try:
        return fn() or None
    except (OSError, AttributeError, ValueError) as e:
        logger.debug(f"System fact not available: {e}")
        return None


def _os_release() -> dict:
    try:
        return platform.freedesktop_os_release()
    except (AttributeError, OSError):
        return {}


class SystemIdentity:
    """
    Static OS facts read once, plus live uptime and load.

    Facts the OS does not report are None.
    """

    def __init__(self):
        release = _os_release()
        self.name = release.get("NAME") or _safe(platform.system)
        self.kernel_version = _safe(platform.release)
        self.os_version = (
            release.get("VERSION_ID")
            or _safe(lambda: platform.mac_ver()[0])
            or _safe(platform.version)
        )
        self.os_long_version = release.get("PRETTY_NAME") or _safe(platform.platform)
        self.host_name = _safe(socket.gethostname)
        self.kernel = self.kernel_version
        self.boot_time = int(psutil.boot_time())

    def uptime(self) -> int:
        return max(0, int(time.time()) - self.boot_time)

    def load_average(self) -> tuple[float, float, float]:
        try:
            return psutil.getloadavg()
        except (OSError, AttributeError) as e:
            logger.debug(f"Load average not available: {e}")
            return (0.0, 0.0, 0.0)


class Providers:
    """
    Lazily created provider handles for a run.

    Each handle is created on first request and then shared, so categories
    that are disabled never pay for their handle. Factories can be replaced,
    which is how tests inject fake handles.
    """

    def __init__(
        self,
        system_info: Callable[[], SystemInfo] = SystemInfo,
        components: Callable[[], Components] = Components,
        disks: Callable[[], Disks] = Disks,
        networks: Callable[[], Networks] = Networks,
        identity: Callable[[], SystemIdentity] = SystemIdentity,
    ):
        self._factories = {
            "system_info": system_info,
            "components": components,
            "disks": disks,
            "networks": networks,
            "identity": identity,
        }
        self._handles: dict = {}

    def _get(self, key: str):
        if key not in self._handles:
            logger.debug(f"Creating provider handle: {key}")
            self._handles[key] = self._factories[key]()
        return self._handles[key]

    def system_info(self) -> SystemInfo:
        return self._get("system_info")

    def components(self) -> Components:
        return self._get("components")

    def disks(self) -> Disks:
        return self._get("disks")

    def networks(self) -> Networks:
        return self._get("networks")

    def identity(self) -> SystemIdentity:
        return self._get("identity")
