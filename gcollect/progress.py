"""Countdown display for timed collections, drawn with rich on stderr.

Only interactive terminals get the bar. Redirected output already receives
the periodic "Collection progress" log lines, so nothing else is drawn there.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

Tick = Callable[[], None]


def is_interactive_terminal(console: Optional[Console] = None) -> bool:
    console = console or Console(stderr=True)
    return console.is_terminal


def _countdown_columns():
    return (
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed:>.0f}/{task.total:.0f}s"),
        TimeElapsedColumn(),
        TextColumn("left"),
        TimeRemainingColumn(),
    )


@contextmanager
def collection_countdown(duration: int, logger=None, label: str = "Collecting") -> Iterator[Tick]:
    """
    Yield a `tick()` callable to invoke once per elapsed second.

    The bar is cleared when the block exits, also on exceptions, so the
    finalization output that follows starts on a clean line.
    """
    console = Console(stderr=True)
    if duration <= 0 or not is_interactive_terminal(console):
        if logger is not None:
            logger.verbose(f"{label} for {duration}s...")
        yield lambda: None
        return

    progress = Progress(*_countdown_columns(), console=console, transient=True)
    task_id = progress.add_task(label, total=duration)
    progress.start()
    try:
        yield lambda: progress.advance(task_id)
    finally:
        progress.stop()


__all__ = [
    "is_interactive_terminal",
    "collection_countdown",
]
