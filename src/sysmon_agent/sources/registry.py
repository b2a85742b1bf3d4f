"""Source registry - builds and samples the enabled metric sources."""

from typing import Iterable, Optional, Type
import logging

from .base import Category, MetricsSource
from .records import Record

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Registry of metric sources.

    Source classes register themselves per category. A registry instance
    holds the sources enabled for one run, built once from configuration and
    sampled in the fixed category order.
    """

    _sources: dict[Category, Type[MetricsSource]] = {}

    def __init__(self, sources: Iterable[MetricsSource]):
        order = list(Category)
        self.sources = sorted(sources, key=lambda s: order.index(s.category))

    @classmethod
    def register(cls, category: Category, source_class: Type[MetricsSource]):
        """Register a metric source class."""
        cls._sources[category] = source_class
        logger.debug(f"Registered metric source: {category.value}")

    @classmethod
    def get(cls, category: Category) -> Optional[Type[MetricsSource]]:
        """Get a source class by category."""
        return cls._sources.get(category)

    @classmethod
    def list_types(cls) -> list[Category]:
        """List registered categories in sampling order."""
        return [c for c in Category if c in cls._sources]

    @classmethod
    def from_config(cls, config, providers=None) -> "SourceRegistry":
        """
        Construct the sources for every enabled category.

        Disabled categories are never constructed, so their provider handles
        are never created or refreshed.
        """
        from .providers import Providers

        providers = providers or Providers()
        sources = []
        for category in config.enabled_categories():
            source_class = cls._sources.get(category)
            if source_class is None:
                logger.warning(f"No source registered for category: {category.value}")
                continue
            sources.append(source_class.from_providers(providers))
            logger.info(f"Initialized source: {category.value} (topic: {category.topic})")
        return cls(sources)

    @property
    def categories(self) -> list[Category]:
        return [s.category for s in self.sources]

    def __len__(self) -> int:
        return len(self.sources)

    def sample_enabled(self) -> list[tuple[Category, Record]]:
        """
        Sample every enabled source once, in category order.

        A source that fails is logged and skipped for this call only; the
        others are still sampled.
        """
        samples = []
        for source in self.sources:
            try:
                samples.append((source.category, source.sample()))
            except Exception as e:
                logger.warning(f"Error sampling {source.name}, skipping this tick: {e}")
        return samples

    def close(self):
        for source in self.sources:
            try:
                source.close()
            except Exception as e:
                logger.warning(f"Error closing source {source.name}: {e}")


def register_source(category: Category):
    """
    Decorator to register a metric source class.

    Usage:
        @register_source(Category.CPU)
        class CpuSource(MetricsSource):
            ...
    """
    def decorator(cls: Type[MetricsSource]):
        cls.category = category
        SourceRegistry.register(category, cls)
        return cls
    return decorator


def get_source(category: Category) -> Optional[Type[MetricsSource]]:
    """Get a source class by category."""
    return SourceRegistry.get(category)


def list_sources() -> list[Category]:
    """List all registered categories."""
    return SourceRegistry.list_types()


# Auto-register built-in sources when this module is imported
from . import system  # noqa: E402,F401
