"""Configuration management for sysmon-agent."""

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError
from .sources import Category


class OutputFormat(str, Enum):
    """Which sinks a run publishes to."""
    MCAP = "mcap"
    WEBSOCKET = "websocket"
    BOTH = "both"

    @property
    def live(self) -> bool:
        return self in (OutputFormat.WEBSOCKET, OutputFormat.BOTH)

    @property
    def durable(self) -> bool:
        return self in (OutputFormat.MCAP, OutputFormat.BOTH)


@dataclass(frozen=True)
class AgentConfig:
    """Main agent configuration. Built once at startup, never mutated."""

    # Categories
    cpu: bool = False
    memory: bool = False
    temperature: bool = False
    disks: bool = False
    networks: bool = False
    processes: bool = False
    system: bool = False

    # Scheduling
    interval: int = 1000  # milliseconds
    timeout: Optional[int] = None  # ticks

    # Sinks
    format: OutputFormat = OutputFormat.BOTH
    path: Path = Path("output.mcap")
    overwrite: bool = False
    host: str = "127.0.0.1"
    port: int = 8765
    server_name: str = "sysmon-agent"

    log_level: str = "INFO"

    def __post_init__(self):
        # Coerce loosely typed values coming from YAML, env or CLI
        if not isinstance(self.format, OutputFormat):
            try:
                object.__setattr__(self, "format", OutputFormat(str(self.format).lower()))
            except ValueError:
                raise ConfigError(
                    f"Invalid format {self.format!r}, expected one of: "
                    f"{', '.join(f.value for f in OutputFormat)}",
                    field_name="format",
                )
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000.0

    def enabled_categories(self) -> list[Category]:
        """Enabled categories in sampling order."""
        return [c for c in Category if getattr(self, c.value)]

    def validate(self):
        """
        Check the configuration before anything is started.

        Raises:
            ConfigError: if a value is out of range, or the recording target
                exists and overwrite is not set
        """
        if self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval}", "interval")
        if self.timeout is not None and self.timeout < 0:
            raise ConfigError(f"timeout must not be negative, got {self.timeout}", "timeout")
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}", "port")
        if self.format.durable and self.path.exists() and not self.overwrite:
            raise ConfigError(
                f"Output file {self.path} already exists, use --overwrite to replace it",
                field_name="path",
            )

    def with_overrides(self, **overrides: Any) -> "AgentConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_file(cls, path: str | Path) -> "AgentConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "AgentConfig":
        """Create config from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known - {"categories"}
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in data.items() if k in known}

        # Categories may also be given as a list: categories: [cpu, memory]
        for name in data.get("categories", []):
            try:
                values[Category(name).value] = True
            except ValueError:
                raise ConfigError(f"Unknown category: {name}", field_name="categories")

        return cls(**values).with_env()

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Create config from defaults and environment variables."""
        return cls().with_env()

    def with_env(self) -> "AgentConfig":
        """Apply SYSMON_* environment overrides."""
        env = os.environ
        overrides: dict[str, Any] = {}
        try:
            if env.get("SYSMON_INTERVAL"):
                overrides["interval"] = int(env["SYSMON_INTERVAL"])
            if env.get("SYSMON_TIMEOUT"):
                overrides["timeout"] = int(env["SYSMON_TIMEOUT"])
            if env.get("SYSMON_PORT"):
                overrides["port"] = int(env["SYSMON_PORT"])
        except ValueError as e:
            raise ConfigError(f"Invalid numeric environment value: {e}")
        if env.get("SYSMON_FORMAT"):
            overrides["format"] = env["SYSMON_FORMAT"]
        if env.get("SYSMON_PATH"):
            overrides["path"] = Path(env["SYSMON_PATH"])
        if env.get("SYSMON_OVERWRITE"):
            overrides["overwrite"] = env["SYSMON_OVERWRITE"].lower() in ("1", "true", "yes")
        if env.get("SYSMON_HOST"):
            overrides["host"] = env["SYSMON_HOST"]
        if env.get("SYSMON_LOG_LEVEL"):
            overrides["log_level"] = env["SYSMON_LOG_LEVEL"]
        return self.with_overrides(**overrides)


def load_config(config_path: Optional[str] = None) -> AgentConfig:
    """Load configuration from file or environment."""
    # Try config file first
    if config_path:
        if not Path(config_path).exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return AgentConfig.from_file(config_path)

    # Try default locations
    default_paths = [
        Path("sysmon-agent.yaml"),
        Path("sysmon-agent.yml"),
        Path.home() / ".sysmon" / "agent.yaml",
        Path("/etc/sysmon/agent.yaml"),
    ]

    for path in default_paths:
        if path.exists():
            return AgentConfig.from_file(path)

    # Fall back to environment
    return AgentConfig.from_env()
