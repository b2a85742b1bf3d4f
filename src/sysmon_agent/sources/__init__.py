"""Metric sources - one per host metric category."""

from .base import Category, MetricsSource
from .providers import Providers
from .records import Record
from .registry import SourceRegistry, get_source, register_source, list_sources

__all__ = [
    "Category",
    "MetricsSource",
    "Providers",
    "Record",
    "SourceRegistry",
    "get_source",
    "register_source",
    "list_sources",
]
