"""Tests for the source registry."""

import pytest

from sysmon_agent.config import AgentConfig
from sysmon_agent.sources import Category, SourceRegistry, get_source, list_sources
from sysmon_agent.sources.records import CpuStats, MemoryStats


ALL_CATEGORIES = {c.value: True for c in Category}


class TestRegistration:
    """Built-in sources register themselves on import."""

    def test_all_categories_registered(self):
        assert list_sources() == list(Category)

    def test_get_source_by_category(self):
        cpu_source = get_source(Category.CPU)

        assert cpu_source.__name__ == "CpuSource"
        assert cpu_source.category == Category.CPU

    def test_topics(self):
        assert [c.topic for c in Category] == [
            "/cpu", "/memory", "/components", "/disks", "/networks", "/processes", "/system",
        ]


class TestFromConfig:
    """Building the enabled subset of sources."""

    def test_only_enabled_categories_are_built(self, fake_providers):
        config = AgentConfig(memory=True, networks=True)

        registry = SourceRegistry.from_config(config, providers=fake_providers)

        assert registry.categories == [Category.MEMORY, Category.NETWORKS]
        assert len(registry) == 2

    def test_disabled_handles_are_never_created(self, fake_providers):
        config = AgentConfig(cpu=True)

        registry = SourceRegistry.from_config(config, providers=fake_providers)
        for _ in range(3):
            registry.sample_enabled()

        factories = fake_providers.factories
        assert factories["system_info"].calls == 1
        assert factories["components"].calls == 0
        assert factories["disks"].calls == 0
        assert factories["networks"].calls == 0
        assert factories["identity"].calls == 0

    def test_cpu_memory_processes_share_one_handle(self, fake_providers):
        config = AgentConfig(cpu=True, memory=True, processes=True)

        registry = SourceRegistry.from_config(config, providers=fake_providers)

        assert fake_providers.factories["system_info"].calls == 1
        handles = {id(source.system) for source in registry.sources}
        assert len(handles) == 1

    def test_no_categories(self, fake_providers):
        registry = SourceRegistry.from_config(AgentConfig(), providers=fake_providers)

        assert registry.sample_enabled() == []


class TestSampleEnabled:
    """Ordering and error isolation."""

    def test_fixed_category_order(self, fake_providers):
        registry = SourceRegistry.from_config(AgentConfig(**ALL_CATEGORIES), providers=fake_providers)

        for _ in range(3):
            categories = [category for category, _ in registry.sample_enabled()]
            assert categories == list(Category)

    def test_order_independent_of_construction(self, fake_providers):
        built = SourceRegistry.from_config(
            AgentConfig(cpu=True, system=True, disks=True), providers=fake_providers
        )
        registry = SourceRegistry(reversed(built.sources))

        assert registry.categories == [Category.CPU, Category.DISKS, Category.SYSTEM]

    def test_records_match_category_schema(self, fake_providers):
        registry = SourceRegistry.from_config(
            AgentConfig(cpu=True, memory=True), providers=fake_providers
        )

        (cpu_cat, cpu), (mem_cat, mem) = registry.sample_enabled()

        assert isinstance(cpu, CpuStats)
        assert isinstance(mem, MemoryStats)
        assert isinstance(cpu, cpu_cat.record_type)
        assert isinstance(mem, mem_cat.record_type)

    def test_failing_category_is_skipped(self, fake_providers):
        registry = SourceRegistry.from_config(
            AgentConfig(cpu=True, memory=True, system=True), providers=fake_providers
        )
        system = fake_providers.system_info()

        def broken():
            raise PermissionError("/proc/meminfo")

        system.refresh_memory = broken

        categories = [category for category, _ in registry.sample_enabled()]

        assert categories == [Category.CPU, Category.SYSTEM]

    def test_failure_only_affects_current_tick(self, fake_providers):
        registry = SourceRegistry.from_config(AgentConfig(memory=True), providers=fake_providers)
        system = fake_providers.system_info()
        original = system.refresh_memory
        failures = iter([True, False])

        def flaky():
            if next(failures):
                raise OSError("transient")
            original()

        system.refresh_memory = flaky

        assert registry.sample_enabled() == []
        assert [c for c, _ in registry.sample_enabled()] == [Category.MEMORY]

    @pytest.mark.parametrize("category", list(Category))
    def test_single_category(self, fake_providers, category):
        registry = SourceRegistry.from_config(
            AgentConfig(**{category.value: True}), providers=fake_providers
        )

        [(sampled, record)] = registry.sample_enabled()

        assert sampled == category
        assert isinstance(record, category.record_type)
