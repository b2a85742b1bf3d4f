"""sysmon-agent - host telemetry sampler publishing to Foxglove sinks."""

__version__ = "0.1.0"
