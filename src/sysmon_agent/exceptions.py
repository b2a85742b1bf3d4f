"""Exceptions raised by the sampling agent."""

from typing import Optional


class AgentError(Exception):
    """Base class for errors that end an agent run."""


class ConfigError(AgentError):
    """
    Raised when the configuration is invalid.
    
    Always raised during startup, before any sink is opened.
    """
    
    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class SignalHandlerError(AgentError):
    """Raised when the cancellation handler cannot be installed."""


class SinkError(AgentError):
    """Base class for sink lifecycle failures."""
    
    def __init__(self, sink: str, message: str):
        super().__init__(f"{sink}: {message}")
        self.sink = sink


class SinkOpenError(SinkError):
    """A sink failed to start."""


class SinkCloseError(SinkError):
    """
    A sink failed to flush and close.
    
    Only raised for sinks whose output must be complete on disk.
    """
