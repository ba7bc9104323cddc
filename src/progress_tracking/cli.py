"""Main CLI entry point for Progress Tracking."""

import json
import sys
import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from progress_tracking import __version__
from progress_tracking.core.registry import ProgressTrackingError
from progress_tracking.core.simulation import CycleSimulation, load_script
from progress_tracking.ui.progress import ProgressDisplay, format_ratio
from progress_tracking.utils.config import Config

# Configure logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

console = Console()

DEFAULT_BAR_WIDTH = 20


def setup_config(config_path: Optional[Path] = None) -> Config:
    """Setup and return configuration instance.

    Args:
        config_path: Optional path to config file

    Returns:
        Configuration instance
    """
    return Config(config_path)


def get_bar_width(config: Config, default: int = DEFAULT_BAR_WIDTH) -> int:
    """Read the progress bar width from configuration.

    Args:
        config: Configuration instance
        default: Width used when the configured value is unusable

    Returns:
        Positive bar width
    """
    value = config.get("bar_width", default)
    try:
        width = int(value)
    except (TypeError, ValueError):
        width = 0

    if width < 1:
        logger.warning(f"Ignoring invalid bar_width {value!r}, using {default}")
        return default
    return width


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config file")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """Progress Tracking - frame-based task progress accounting."""
    config = setup_config(config_path)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    level = logging.INFO if verbose else logging.getLevelName(str(config.get("log_level", "WARNING")).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.getLogger().setLevel(level)

    if verbose:
        console.print(f"[bold green]Progress Tracking v{__version__}[/bold green]")
        console.print("Verbose mode enabled")


@main.command("simulate")
@click.argument("script", type=click.Path(path_type=Path))
@click.option("--tag", "-t", "tags", multiple=True, help="Only simulate this domain (repeatable)")
@click.option("--cycles", type=click.IntRange(min=0), help="Number of cycles to run")
@click.option("--output", "-o", type=click.Path(), help="Save cycle reports to JSON file")
@click.pass_context
def simulate_command(
    ctx: click.Context,
    script: Path,
    tags: Tuple[str, ...],
    cycles: Optional[int],
    output: Optional[str]
) -> None:
    """Run a scripted update loop and report progress per cycle."""
    config = ctx.obj["config"]
    try:
        simulation = CycleSimulation(load_script(script), tags=list(tags) or None)
        reports = simulation.run(cycles=cycles)

        display = ProgressDisplay(console=console, bar_width=get_bar_width(config))
        baselines = {tag: simulation.registry.get(tag).persisted for tag in simulation.domains}
        display.show(reports, baselines)

        if not reports:
            console.print("[yellow]Script contains no cycles.[/yellow]")
            return

        for tag in simulation.domains:
            ledger = simulation.registry.get(tag)
            status = "[green]complete[/green]" if ledger.is_finished() else "[yellow]in progress[/yellow]"
            console.print(f"[bold]{tag}[/bold]: {format_ratio(ledger.progress())} {status}")

        if output:
            try:
                with open(output, 'w', encoding="utf-8") as f:
                    json.dump([report.to_dict() for report in reports], f, indent=2)
            except OSError as e:
                console.print(f"[red]Error: Cannot write reports to {escape(output)}: {escape(e.strerror or str(e))}[/red]")
                sys.exit(1)
            console.print(f"\n[green]Reports saved to {escape(output)}[/green]")

    except ProgressTrackingError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("validate")
@click.argument("script", type=click.Path(path_type=Path))
def validate_command(script: Path) -> None:
    """Check a simulation script and list the domains it defines."""
    try:
        data = load_script(script)
    except ProgressTrackingError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Domain", style="cyan")
    table.add_column("Cycles", justify="right")
    table.add_column("Persisted", justify="right")

    for tag, domain in data["domains"].items():
        persist = domain.get("persist", {})
        tasks = persist.get("tasks", 0) + persist.get("done_tasks", 0)
        done = persist.get("done", 0) + persist.get("done_tasks", 0)
        table.add_row(tag, str(len(domain.get("cycles", []))), f"{done}/{tasks}")

    console.print(f"[bold green]Script is valid[/bold green] ({len(data['domains'])} domains)")
    console.print(table)


if __name__ == "__main__":
    main()
