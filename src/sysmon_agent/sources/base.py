"""Base interface for all metric sources."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Type

from .records import (
    ComponentsStats,
    CpuStats,
    DisksStats,
    MemoryStats,
    NetworksStats,
    ProcessesStats,
    Record,
    SystemStats,
)


class Category(str, Enum):
    """
    Metric categories, declared in sampling order.

    The value matches the configuration flag that enables the category.
    """
    CPU = "cpu"
    MEMORY = "memory"
    TEMPERATURE = "temperature"
    DISKS = "disks"
    NETWORKS = "networks"
    PROCESSES = "processes"
    SYSTEM = "system"

    @property
    def topic(self) -> str:
        """Channel the category is published on."""
        return _TOPICS[self]

    @property
    def record_type(self) -> Type[Record]:
        """Record schema published for this category."""
        return _RECORD_TYPES[self]


_TOPICS = {
    Category.CPU: "/cpu",
    Category.MEMORY: "/memory",
    Category.TEMPERATURE: "/components",
    Category.DISKS: "/disks",
    Category.NETWORKS: "/networks",
    Category.PROCESSES: "/processes",
    Category.SYSTEM: "/system",
}

_RECORD_TYPES = {
    Category.CPU: CpuStats,
    Category.MEMORY: MemoryStats,
    Category.TEMPERATURE: ComponentsStats,
    Category.DISKS: DisksStats,
    Category.NETWORKS: NetworksStats,
    Category.PROCESSES: ProcessesStats,
    Category.SYSTEM: SystemStats,
}


class MetricsSource(ABC):
    """
    Abstract base class for all metric sources.

    A source owns the provider handle it reads from and produces one record
    per call to `sample()`. Handles are refreshed in place, never rebuilt per
    tick, so providers that compute deltas between refreshes stay correct.

    Example:
        @register_source(Category.MEMORY)
        class MemorySource(MetricsSource):
            @classmethod
            def from_providers(cls, providers):
                return cls(providers.system_info())

            def sample(self) -> MemoryStats:
                ...
    """

    # Set by @register_source
    category: Category

    @classmethod
    @abstractmethod
    def from_providers(cls, providers) -> "MetricsSource":
        """Build the source, acquiring its handle from a `Providers` bundle."""
        pass

    @abstractmethod
    def sample(self) -> Record:
        """
        Refresh the underlying handle and read one record.

        Returns:
            A freshly built, immutable record
        """
        pass

    def close(self):
        """Release resources. Override if needed."""
        pass

    @property
    def name(self) -> str:
        return self.category.value
