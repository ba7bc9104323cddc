"""Progress display utilities."""

from typing import Dict, Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.ledger import TaskProgress
from ..core.simulation import CycleReport


def format_ratio(value: float) -> str:
    """Format a completion ratio as a percentage.

    Args:
        value: Ratio between 0 and 1

    Returns:
        Percentage string with one decimal
    """
    return f"{value * 100:.1f}%"


def render_bar(value: float, width: int = 20) -> str:
    """Render a ratio as a text bar.

    Args:
        value: Ratio between 0 and 1
        width: Number of characters in the bar

    Returns:
        Bar made of filled and empty blocks
    """
    filled = int(round(max(0.0, min(value, 1.0)) * width))
    return "█" * filled + "░" * (width - filled)


class ProgressDisplay:
    """Renders ledger snapshots to the console."""

    def __init__(self, console: Optional[Console] = None, bar_width: int = 20):
        """Initialize progress display.

        Args:
            console: Console to print to
            bar_width: Width of the progress bars
        """
        self.console = console or Console()
        self.bar_width = bar_width

    def cycle_table(self, reports: Iterable[CycleReport]) -> Table:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Cycle", justify="right")
        table.add_column("Domain", style="cyan")
        table.add_column("Tasks", justify="right")
        table.add_column("Done", justify="right")
        table.add_column("Progress")

        for report in reports:
            previous = report.snapshot.previous
            style = "green" if previous.tasks and previous.done >= previous.tasks else "yellow"
            table.add_row(
                str(report.cycle),
                report.tag,
                str(previous.tasks),
                str(previous.done),
                f"[{style}]{render_bar(report.progress, self.bar_width)}[/{style}] {format_ratio(report.progress)}"
            )

        return table

    def baseline_panel(self, baselines: Dict[str, TaskProgress]) -> Panel:
        lines = [
            f"[bold cyan]{tag}:[/bold cyan] {pair.done}/{pair.tasks} done"
            for tag, pair in baselines.items()
        ]
        content = "\n".join(lines) if lines else "No persisted tasks"
        return Panel(content, title="Persisted Baselines", border_style="blue")

    def show(self, reports: Iterable[CycleReport], baselines: Dict[str, TaskProgress]) -> None:
        self.console.print(self.baseline_panel(baselines))
        self.console.print(self.cycle_table(reports))
