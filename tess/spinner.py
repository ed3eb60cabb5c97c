"""Run one blocking call on a background worker while a spinner animates."""

from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from rich.markup import escape

from .console import Console
from .constants import SPINNER

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["FetchCompleted", "run_with_spinner"]


@dataclass(frozen=True, slots=True)
class FetchCompleted:
    """One-shot completion event posted by the background worker."""

    result: Any = None
    error: Optional[BaseException] = None


def _completion_event(future: Future) -> FetchCompleted:
    error = future.exception()
    if error is not None:
        return FetchCompleted(error=error)
    return FetchCompleted(result=future.result())


def run_with_spinner(
    console: Console,
    title: str,
    work: Callable[[], T],
    tick_seconds: float = SPINNER['tick_seconds'],
) -> T:
    """Run ``work`` on a background worker while a spinner animates.

    The calling thread only waits on its own event queue: every tick without
    a completion event refreshes the spinner label, and the single completion
    event ends the wait. The work always runs to completion or failure.

    Raises:
        Whatever ``work`` raised; nothing is retried.
    """
    events: "queue.Queue[FetchCompleted]" = queue.Queue()
    label = escape(title)
    started = time.monotonic()

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="tess-fetch") as executor:
        future = executor.submit(work)
        future.add_done_callback(lambda done: events.put(_completion_event(done)))

        with console.status(f"[accent]{label}", spinner=SPINNER['name']) as status:
            while True:
                try:
                    event = events.get(timeout=tick_seconds)
                except queue.Empty:
                    elapsed = time.monotonic() - started
                    status.update(f"[accent]{label} [muted]({elapsed:.0f}s)[/]")
                    continue
                break

    logger.debug("%s finished in %.2fs", title, time.monotonic() - started)
    if event.error is not None:
        raise event.error
    # Persist a line so the step stays visible once the spinner is gone
    console.print(f"[success]✓[/] {label}")
    return event.result
