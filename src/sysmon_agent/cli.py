"""sysmon-agent CLI - host telemetry sampling."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from . import __version__
from .agent import Agent
from .config import OutputFormat, load_config
from .exceptions import AgentError
from .sources import Category, get_source, list_sources

console = Console()


def setup_logging(level: str):
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _category_options(f):
    """Attach one enable flag per metric category."""
    flags = [
        ("-c", "--cpu", "Log cpu info"),
        ("-m", "--memory", "Log memory info"),
        ("-t", "--temperature", "Log components temperature"),
        ("-d", "--disks", "Log disks info"),
        ("-n", "--networks", "Log networks info"),
        ("-p", "--processes", "Log processes info"),
        ("-s", "--system", "Log system info"),
    ]
    for short, long, help_text in reversed(flags):
        f = click.option(short, long, is_flag=True, help=help_text)(f)
    return f


def _build_config(config_path: Optional[str], **overrides):
    config = load_config(config_path)
    # Flags only switch things on; an unset flag keeps the file/env value
    overrides = {k: v for k, v in overrides.items() if v is not False}
    return config.with_overrides(**overrides)


@click.group()
@click.version_option(version=__version__, prog_name="sysmon-agent")
def main():
    """sysmon-agent - sample host metrics and publish them to Foxglove."""
    pass


@main.command()
@_category_options
@click.option("--config", "-C", "config_path", help="Path to config file")
@click.option("--interval", "-i", type=int, help="Interval between samples in milliseconds [default: 1000]")
@click.option("--timeout", type=int, help="Exit after this many ticks")
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice([f.value for f in OutputFormat], case_sensitive=False),
    help="Output format: mcap file, websocket server, or both [default: both]",
)
@click.option("--path", type=click.Path(dir_okay=False, path_type=Path), help="Output path for mcap file [default: output.mcap]")
@click.option("--overwrite", "-o", is_flag=True, help="Overwrite an existing mcap file")
@click.option("--host", help="Live feed host [default: 127.0.0.1]")
@click.option("--port", type=int, help="Live feed port [default: 8765]")
@click.option("--log-level", help="Log level [default: INFO]")
def run(config_path: Optional[str], output_format: Optional[str], **options):
    """Run the sampling agent until interrupted or timed out."""
    try:
        config = _build_config(config_path, format=output_format, **options)
    except AgentError as e:
        console.print(f"[red]x {e}[/red]", soft_wrap=True)
        sys.exit(1)

    setup_logging(config.log_level)

    categories = config.enabled_categories()
    if not categories:
        console.print("[yellow]! No categories enabled, nothing will be published[/yellow]")

    console.print(Panel(
        f"[bold green]sysmon-agent v{__version__}[/bold green]\n"
        f"Categories: {', '.join(c.value for c in categories) or 'none'}\n"
        f"Format: {config.format.value}\n"
        f"Interval: {config.interval}ms"
        + (f"\nTimeout: {config.timeout} ticks" if config.timeout is not None else ""),
        title="Starting",
    ))

    agent = Agent(config)
    try:
        asyncio.run(agent.run())
    except AgentError as e:
        console.print(f"[red]x {e}[/red]", soft_wrap=True)
        sys.exit(1)

    console.print(f"[green]+ Stopped after {agent.ticks} ticks[/green]")


@main.command()
@_category_options
@click.option("--config", "-C", "config_path", help="Path to config file")
def once(config_path: Optional[str], **categories):
    """Sample the enabled categories once and print a summary."""
    try:
        config = _build_config(config_path, **categories)
    except AgentError as e:
        console.print(f"[red]x {e}[/red]", soft_wrap=True)
        sys.exit(1)

    setup_logging(config.log_level)
    samples = Agent(config, handle_signals=False).collect_once()
    _display_samples(samples)


def _display_samples(samples: list):
    """Display sampled records in a table."""
    if not samples:
        console.print("[yellow]No records sampled[/yellow]")
        return

    table = Table(title=f"Sampled {len(samples)} Records", show_lines=True)
    table.add_column("Topic", style="cyan")
    table.add_column("Summary")

    for category, record in samples:
        data = record.to_dict()
        parts = []
        for key, value in data.items():
            if isinstance(value, list):
                parts.append(f"{key}: {len(value)} entries")
            else:
                parts.append(f"{key}={value}")
        summary = ", ".join(parts[:6])
        if len(parts) > 6:
            summary += f" (+{len(parts) - 6})"
        table.add_row(category.topic, summary)

    console.print(table)


@main.command()
def sources():
    """List metric categories and their topics."""
    console.print("[bold]Metric Categories:[/bold]\n")

    table = Table(show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Topic")
    table.add_column("Flag", style="dim")
    table.add_column("Source", style="dim")

    registered = list_sources()

    for category in Category:
        status = "[green]+" if category in registered else "[red]x"
        source_class = get_source(category)
        table.add_row(
            f"{status} {category.value}",
            category.topic,
            f"--{category.value}",
            source_class.__name__ if source_class else "-",
        )

    console.print(table)


@main.command()
@click.option("--output", "-o", type=click.Path(), help="Output file path")
def init(output: Optional[str]):
    """Generate a sample configuration file."""
    sample_config = """# sysmon-agent configuration

# Metric categories to sample
cpu: true
memory: true
temperature: false
disks: false
networks: false
processes: false
system: false

# Milliseconds between samples
interval: 1000

# Stop after this many ticks (omit to run until interrupted)
# timeout: 60

# Output: mcap, websocket or both
format: both
path: output.mcap
overwrite: false

# Live feed (Foxglove WebSocket server)
host: 127.0.0.1
port: 8765

log_level: INFO
"""

    output_path = output or "sysmon-agent.yaml"

    with open(output_path, "w") as f:
        f.write(sample_config)

    console.print(f"[green]+ Created config file: {output_path}[/green]")
    console.print("\nEdit the file to choose your categories, then run:")
    console.print(f"  [cyan]sysmon-agent run -C {output_path}[/cyan]")


if __name__ == "__main__":
    main()
