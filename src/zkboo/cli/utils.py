"""CLI utilities for zkboo.

Formatting, colors, tables, spinners and logging setup.
"""

import json
import math
import logging
from typing import Dict, Any, List, Optional
from datetime import datetime, timedelta

import click
import humanize
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from zkboo.core.config import PARTIES
from zkboo.core.randomness import WORD_MASK

console = Console()


def print_success(message: str):
    """Print success message in green."""
    console.print(f"✅ {message}", style="bold green")


def print_error(message: str):
    """Print error message in red."""
    console.print(f"❌ {message}", style="bold red")


def print_warning(message: str):
    console.print(f"⚠️  {message}", style="bold yellow")


def print_info(message: str):
    console.print(f"ℹ️  {message}", style="bold blue")


def print_table(title: str, columns: List[str], rows: List[List[Any]]):
    """Print data as a rich table.

    Args:
        title: Table title
        columns: Column headers
        rows: Table rows
    """
    table = Table(title=title, box=box.ROUNDED, title_style="bold cyan")

    for col in columns:
        table.add_column(col, style="cyan")

    for row in rows:
        table.add_row(*[str(cell) for cell in row])

    console.print(table)


def print_json(data: Dict[str, Any]):
    """Print JSON data with syntax highlighting."""
    syntax = Syntax(
        json.dumps(data, indent=2, default=str),
        "json",
        theme="monokai",
        line_numbers=False
    )
    console.print(syntax)


def format_bytes(bytes_val: int) -> str:
    """Format bytes to human readable string."""
    return humanize.naturalsize(bytes_val, binary=True)


def format_duration(seconds: float) -> str:
    """Format a duration, keeping sub-second precision."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return humanize.precisedelta(timedelta(seconds=seconds), minimum_unit="milliseconds")


def format_timestamp(timestamp: float) -> str:
    dt = datetime.fromtimestamp(timestamp)
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def format_soundness(repetitions: int) -> str:
    """Soundness error (1/3)^R as a power of two."""
    bits = repetitions * math.log2(PARTIES)
    return f"2^-{bits:.0f}"


def format_flag(word: int) -> str:
    """Render a boolean output word."""
    if word == WORD_MASK:
        return "[green]true[/green]"
    if word == 0:
        return "[red]false[/red]"
    return f"{word} ({word:#010x})"


def create_progress_spinner(message: str):
    """Create a progress spinner."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    )


async def run_with_spinner(coro, description: str) -> Any:
    """Await a coroutine while a spinner runs."""
    with create_progress_spinner(description) as progress:
        progress.add_task(description=description, total=None)
        return await coro


def setup_logging(level: str, debug: bool = False) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=debug)],
        force=True,
    )


class WordParam(click.ParamType):
    """A 32-bit word, given in decimal or with a 0x/0b/0o prefix."""

    name = "word"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            word = value
        else:
            try:
                word = int(str(value), 0)
            except ValueError:
                self.fail(f"{value!r} is not an integer", param, ctx)
        if not 0 <= word <= WORD_MASK:
            self.fail(f"{value!r} does not fit in 32 bits", param, ctx)
        return word


WORD = WordParam()


__all__ = [
    "console",
    "print_success",
    "print_error",
    "print_warning",
    "print_info",
    "print_table",
    "print_json",
    "format_bytes",
    "format_duration",
    "format_timestamp",
    "format_soundness",
    "format_flag",
    "create_progress_spinner",
    "run_with_spinner",
    "setup_logging",
    "WORD",
]
