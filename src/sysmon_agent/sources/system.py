"""Host metric sources - map psutil provider handles to typed records."""

import logging
from typing import Optional

from .base import Category, MetricsSource
from .providers import Components, Disks, Networks, SystemIdentity, SystemInfo
from .records import (
    ComponentsStats,
    ComponentStats,
    CoreStats,
    CpuStats,
    DisksStats,
    DiskStats,
    MemoryStats,
    NetworksStats,
    NetworkStats,
    ProcessesStats,
    ProcessStats,
    SystemStats,
)
from .registry import register_source

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_FACT = "<unknown>"


def as_text(value, default: str = UNKNOWN) -> str:
    """
    Return `value` as UTF-8 representable text, or `default`.

    Paths with undecodable bytes come back from the OS with surrogate escapes;
    those are not representable and fall back too.
    """
    if value is None:
        return default
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return default
    value = str(value)
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return default
    return value


def kb(num_bytes: int) -> int:
    return int(num_bytes) // 1024


@register_source(Category.CPU)
class CpuSource(MetricsSource):
    """Global and per-core CPU usage."""

    def __init__(self, system: SystemInfo):
        self.system = system

    @classmethod
    def from_providers(cls, providers) -> "CpuSource":
        return cls(providers.system_info())

    def sample(self) -> CpuStats:
        self.system.refresh_cpu_all()
        return CpuStats(
            usage=self.system.global_cpu_usage(),
            physical_cores=_parse_core_count(self.system.physical_core_count()),
            cores=[
                CoreStats(
                    usage=core.usage,
                    frequency_mhz=core.frequency_mhz,
                    vendor_id=core.vendor_id,
                    brand=core.brand,
                )
                for core in self.system.cpus()
            ],
        )


def _parse_core_count(count) -> int:
    try:
        return int(str(count).strip())
    except ValueError:
        return 0


@register_source(Category.MEMORY)
class MemorySource(MetricsSource):
    """RAM and swap usage in KB."""

    def __init__(self, system: SystemInfo):
        self.system = system

    @classmethod
    def from_providers(cls, providers) -> "MemorySource":
        return cls(providers.system_info())

    def sample(self) -> MemoryStats:
        self.system.refresh_memory()
        return MemoryStats(
            total_kb=kb(self.system.total_memory()),
            available_kb=kb(self.system.available_memory()),
            used_kb=kb(self.system.used_memory()),
            swap_total_kb=kb(self.system.total_swap()),
            swap_used_kb=kb(self.system.used_swap()),
        )


@register_source(Category.TEMPERATURE)
class ThermalSource(MetricsSource):
    """Temperature of every sensor the host exposes."""

    def __init__(self, components: Components):
        self.components = components

    @classmethod
    def from_providers(cls, providers) -> "ThermalSource":
        return cls(providers.components())

    def sample(self) -> ComponentsStats:
        self.components.refresh()
        return ComponentsStats(components=[
            ComponentStats(
                label=as_text(sensor.label),
                temperature=sensor.temperature if sensor.temperature is not None else 0.0,
            )
            for sensor in self.components
        ])


@register_source(Category.DISKS)
class DiskSource(MetricsSource):
    """Per-disk I/O, cumulative and since the previous sample."""

    def __init__(self, disks: Disks):
        self.disks = disks

    @classmethod
    def from_providers(cls, providers) -> "DiskSource":
        return cls(providers.disks())

    def sample(self) -> DisksStats:
        self.disks.refresh()
        return DisksStats(disks=[
            DiskStats(
                name=as_text(disk.name),
                mount_point=as_text(disk.mount_point),
                total_read_kb=kb(disk.usage.total_read_bytes),
                total_written_kb=kb(disk.usage.total_written_bytes),
                read_kb=kb(disk.usage.read_bytes),
                written_kb=kb(disk.usage.written_bytes),
            )
            for disk in self.disks
        ])


@register_source(Category.NETWORKS)
class NetworkSource(MetricsSource):
    """Per-interface traffic, cumulative and since the previous sample."""

    def __init__(self, networks: Networks):
        self.networks = networks

    @classmethod
    def from_providers(cls, providers) -> "NetworkSource":
        return cls(providers.networks())

    def sample(self) -> NetworksStats:
        self.networks.refresh()
        return NetworksStats(networks=[
            NetworkStats(
                interface_name=as_text(name),
                mac_address=data.mac_address,
                received=data.received,
                transmitted=data.transmitted,
                total_received=data.total_received,
                total_transmitted=data.total_transmitted,
            )
            for name, data in self.networks.items()
        ])


@register_source(Category.PROCESSES)
class ProcessSource(MetricsSource):
    """The full process table."""

    def __init__(self, system: SystemInfo):
        self.system = system

    @classmethod
    def from_providers(cls, providers) -> "ProcessSource":
        system = providers.system_info()
        # Baseline for per-process cpu usage
        system.refresh_processes()
        return cls(system)

    def sample(self) -> ProcessesStats:
        self.system.refresh_processes()
        return ProcessesStats(processes=[
            ProcessStats(
                pid=proc.pid,
                parent_pid=str(proc.parent_pid) if proc.parent_pid is not None else UNKNOWN,
                name=as_text(proc.name),
                status=as_text(proc.status),
                cpu_usage=proc.cpu_usage,
                memory_usage_kb=kb(proc.memory_bytes),
                start_time_seconds=proc.start_time,
                run_time_seconds=proc.run_time,
            )
            for proc in self.system.processes()
        ])


@register_source(Category.SYSTEM)
class SystemIdentitySource(MetricsSource):
    """OS identity, uptime and load averages."""

    def __init__(self, identity: SystemIdentity):
        self.identity = identity

    @classmethod
    def from_providers(cls, providers) -> "SystemIdentitySource":
        return cls(providers.identity())

    def sample(self) -> SystemStats:
        ident = self.identity
        one, five, fifteen = ident.load_average()
        return SystemStats(
            name=_fact(ident.name),
            kernel_version=_fact(ident.kernel_version),
            os_version=_fact(ident.os_version),
            os_long_version=_fact(ident.os_long_version),
            host_name=_fact(ident.host_name),
            kernel=_fact(ident.kernel),
            boot_time_seconds=ident.boot_time,
            uptime_seconds=ident.uptime(),
            load_avg_one=one,
            load_avg_five=five,
            load_avg_fifteen=fifteen,
        )


def _fact(value: Optional[str]) -> str:
    return as_text(value, default=UNKNOWN_FACT) if value else UNKNOWN_FACT
