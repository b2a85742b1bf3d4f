"""Pydantic record schemas published for each metric category."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """Base class for an immutable per-tick record."""

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary for publishing."""
        return self.model_dump(mode="json")


# =============================================================================
# CPU
# =============================================================================

class CoreStats(Record):
    """Usage and identity of one logical CPU."""
    usage: float = Field(..., description="Core usage in percent")
    frequency_mhz: int = Field(0, description="Current frequency in MHz")
    vendor_id: str = ""
    brand: str = ""


class CpuStats(Record):
    """Published on /cpu."""
    usage: float = Field(..., description="Global CPU usage in percent")
    physical_cores: int = Field(0, description="Physical core count, 0 if unknown")
    cores: List[CoreStats] = Field(default_factory=list)


# =============================================================================
# Memory
# =============================================================================

class MemoryStats(Record):
    """Published on /memory."""
    total_kb: int
    available_kb: int
    used_kb: int
    swap_total_kb: int
    swap_used_kb: int


# =============================================================================
# Thermal components
# =============================================================================

class ComponentStats(Record):
    label: str
    temperature: float = Field(0.0, description="Degrees Celsius, 0.0 if not reported")


class ComponentsStats(Record):
    """Published on /components."""
    components: List[ComponentStats] = Field(default_factory=list)


# =============================================================================
# Disks
# =============================================================================

class DiskStats(Record):
    name: str
    mount_point: str
    total_read_kb: int = Field(0, description="Read since boot")
    total_written_kb: int = Field(0, description="Written since boot")
    read_kb: int = Field(0, description="Read since the previous refresh")
    written_kb: int = Field(0, description="Written since the previous refresh")


class DisksStats(Record):
    """Published on /disks."""
    disks: List[DiskStats] = Field(default_factory=list)


# =============================================================================
# Networks
# =============================================================================

class NetworkStats(Record):
    interface_name: str
    mac_address: str
    received: int = Field(0, description="Bytes received since the previous refresh")
    transmitted: int = Field(0, description="Bytes sent since the previous refresh")
    total_received: int = 0
    total_transmitted: int = 0


class NetworksStats(Record):
    """Published on /networks."""
    networks: List[NetworkStats] = Field(default_factory=list)


# =============================================================================
# Processes
# =============================================================================

class ProcessStats(Record):
    pid: int
    parent_pid: str = Field(..., description="Parent pid, or 'Unknown'")
    name: str
    status: str
    cpu_usage: float
    memory_usage_kb: int
    start_time_seconds: int
    run_time_seconds: int


class ProcessesStats(Record):
    """Published on /processes."""
    processes: List[ProcessStats] = Field(default_factory=list)


# =============================================================================
# System identity
# =============================================================================

class SystemStats(Record):
    """Published on /system."""
    name: str
    kernel_version: str
    os_version: str
    os_long_version: str
    host_name: str
    kernel: str
    boot_time_seconds: int
    uptime_seconds: int
    load_avg_one: float
    load_avg_five: float
    load_avg_fifteen: float
