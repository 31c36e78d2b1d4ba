"""Rich formatting helpers for CLI output"""

from datetime import datetime

from rich import box
from rich.console import Console
from rich.table import Table

from forgebot.infra.jobs.cron import JobDefinition

console = Console()


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def create_jobs_table(
    definitions: list[JobDefinition], now: datetime, upcoming: int = 3
) -> Table:
    """Create a formatted table of the job catalog and its next run times"""
    table = Table(title="Scheduled Jobs", box=box.ROUNDED)

    table.add_column("Name", justify="left", style="cyan", no_wrap=True)
    table.add_column("Schedule", justify="left", style="magenta")
    table.add_column("Next Runs (UTC)", justify="left", style="green")
    table.add_column("Metadata Keys", justify="left", style="yellow")

    for definition in definitions:
        next_runs = definition.schedule.after(now, upcoming)
        table.add_row(
            definition.name,
            str(definition.schedule),
            "\n".join(run.strftime("%Y-%m-%d %H:%M:%S") for run in next_runs),
            ", ".join(sorted(definition.metadata)) or "-",
        )

    return table
