"""Interactive two-stage selection of a direct report and one of their review cycles.

Each stage alternates between a *fetching* step, where a single background
worker loads the options while a spinner animates, and a *listing* step,
where the operator moves a cursor over the options and confirms or aborts.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, TypeVar

import click
from rich.live import Live
from rich.markup import escape
from rich.text import Text

from .console import Console
from .constants import API_DEFAULTS, ERROR_MESSAGES, INFO_MESSAGES, LIST_KEYS
from .exceptions import ApiError, AuthenticationError, SelectionError, TessError
from .models import CycleChoice, Review, ReviewCycle, Reviewee, SelectionResult, User
from .spinner import run_with_spinner

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "ListPicker",
    "SelectionWorkflow",
    "WorkflowState",
    "filter_eligible_cycles",
    "normalize_key",
    "read_key",
    "sort_by_name",
]


# =============================================================================
# Listing: cursor-driven picker
# =============================================================================

_RAW_KEYS = {
    "\x1b[A": "up",
    "\x1bOA": "up",
    "\xe0H": "up",
    "\x00H": "up",
    "\x1b[B": "down",
    "\x1bOB": "down",
    "\xe0P": "down",
    "\x00P": "down",
    "\r": "enter",
    "\n": "enter",
    "\x1b": "esc",
    "\x03": "ctrl+c",
}


def normalize_key(raw: str) -> str:
    """Translate a raw terminal key sequence into a key name."""
    return _RAW_KEYS.get(raw, raw)


def read_key() -> str:
    """Block for one key press and return its name."""
    try:
        return normalize_key(click.getchar())
    except (KeyboardInterrupt, EOFError):
        return "ctrl+c"


class ListPicker:
    """Cursor over an ordered list of names.

    ``handle_key`` returns True once the picker is finished: either an item
    was confirmed (``choice`` holds its index) or the operator aborted
    (``aborted`` is set and ``choice`` stays None). Confirming an empty list
    finishes with no choice.
    """

    def __init__(self, title: str, items: Sequence[str]) -> None:
        self.title = title or "Select"
        self.items = list(items)
        self.cursor = 0
        self.choice: Optional[int] = None
        self.aborted = False
        self.finished = False

    def handle_key(self, key: str) -> bool:
        if self.finished:
            return True
        if key in LIST_KEYS['abort']:
            self.aborted = True
            self.finished = True
        elif key in LIST_KEYS['up']:
            self.cursor = max(self.cursor - 1, 0)
        elif key in LIST_KEYS['down']:
            self.cursor = min(self.cursor + 1, max(len(self.items) - 1, 0))
        elif key in LIST_KEYS['confirm']:
            if self.items:
                self.choice = self.cursor
            self.finished = True
        return self.finished

    def view(self) -> str:
        lines = ["", f"{self.title} (↑/↓, Enter, q):", ""]
        for index, item in enumerate(self.items):
            marker = ">" if index == self.cursor else " "
            lines.append(f"{marker} {item}")
        return "\n".join(lines)

    def pick(self, console: Console, key_reader: Callable[[], str] = read_key) -> Optional[int]:
        """Run the picker interactively and return the chosen index."""
        with Live(Text(self.view()), console=console, auto_refresh=False, transient=True) as live:
            while not self.handle_key(key_reader()):
                live.update(Text(self.view()), refresh=True)
        return self.choice


# =============================================================================
# Workflow
# =============================================================================


class WorkflowState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    LISTING = "listing"
    SELECTED = "selected"
    COMPLETE = "complete"
    ABORTED = "aborted"


class ReviewDataSource(Protocol):
    """Remote calls the selection workflow relies on."""

    def get_me(self) -> User: ...

    def list_direct_reports(self, manager: User) -> List[User]: ...

    def list_review_cycles(self) -> List[ReviewCycle]: ...

    def list_reviewees_by_url(self, url: str) -> List[Reviewee]: ...

    def list_reviews_by_url(self, url: str, limit: int) -> List[Review]: ...


def sort_by_name(items: Iterable[T], name: Callable[[T], str]) -> List[T]:
    """Sort case-insensitively by display name."""
    return sorted(items, key=lambda item: name(item).lower())


def filter_eligible_cycles(
    source: ReviewDataSource,
    cycles: Iterable[ReviewCycle],
    subject_id: str,
) -> List[CycleChoice]:
    """Keep the cycles whose reviewee list contains ``subject_id``.

    A cycle whose reviewee list cannot be fetched is treated as ineligible.
    """
    eligible: List[CycleChoice] = []
    for cycle in cycles:
        try:
            reviewees = source.list_reviewees_by_url(cycle.reviewees_url)
        except TessError as exc:
            logger.debug("Skipping cycle %s (%s): %s", cycle.id, cycle.name, exc)
            continue
        for reviewee in reviewees:
            if reviewee.user_id == subject_id:
                eligible.append(CycleChoice(cycle=cycle, reviews_url=reviewee.reviews_url))
                break
    return eligible


class SelectionWorkflow:
    """Drive the user → cycle → reviews selection.

    ``run`` returns the selected subject, cycle and fetched reviews, or None
    when the operator aborts or a stage has nothing to offer. A failed fetch
    raises :class:`SelectionError` and ends the run.
    """

    def __init__(
        self,
        source: ReviewDataSource,
        console: Console,
        review_limit: int = API_DEFAULTS['review_limit'],
        key_reader: Callable[[], str] = read_key,
        picker_factory: Callable[[str, Sequence[str]], ListPicker] = ListPicker,
    ) -> None:
        self.source = source
        self.console = console
        self.review_limit = review_limit
        self.key_reader = key_reader
        self.picker_factory = picker_factory
        self.state = WorkflowState.IDLE
        self.stage: Optional[str] = None

    def _enter(self, state: WorkflowState, stage: Optional[str] = None) -> None:
        logger.debug("selection: %s -> %s (%s)", self.state.value, state.value, stage or self.stage)
        self.state = state
        if stage is not None:
            self.stage = stage

    def _fetch(self, title: str, work: Callable[[], T]) -> T:
        self._enter(WorkflowState.FETCHING, title)
        try:
            return run_with_spinner(self.console, title, work)
        except (ApiError, AuthenticationError) as exc:
            raise SelectionError(f"{title.rstrip('.')} failed: {exc}", stage=title) from exc

    def _list(self, title: str, names: Sequence[str]) -> Optional[int]:
        self._enter(WorkflowState.LISTING, title)
        picker = self.picker_factory(title, names)
        index = picker.pick(self.console, self.key_reader)
        if picker.aborted:
            self._enter(WorkflowState.ABORTED)
            self.console.print(f"[muted]{INFO_MESSAGES['selection_cancelled']}[/]")
            return None
        if index is None:
            self._enter(WorkflowState.ABORTED)
            return None
        self._enter(WorkflowState.SELECTED)
        self.console.print(f"[success]Selected:[/] {escape(names[index])}")
        return index

    def select_subject(self) -> Optional[User]:
        """Stage 1: pick one of the current user's direct reports."""
        me = self._fetch(INFO_MESSAGES['loading_me'], self.source.get_me)
        reports = self._fetch(
            INFO_MESSAGES['loading_reports'],
            lambda: sort_by_name(self.source.list_direct_reports(me), lambda user: user.name),
        )
        if not reports:
            self._enter(WorkflowState.ABORTED)
            self.console.print_warning(ERROR_MESSAGES['no_reports'])
            return None

        index = self._list("Select a user", [user.name for user in reports])
        return reports[index] if index is not None else None

    def select_cycle(self, subject: User) -> Optional[CycleChoice]:
        """Stage 2: pick one of the cycles in which ``subject`` is a reviewee."""
        cycles = self._fetch(INFO_MESSAGES['loading_cycles'], self.source.list_review_cycles)
        eligible = self._fetch(
            INFO_MESSAGES['filtering_cycles'].format(name=subject.name),
            lambda: sort_by_name(
                filter_eligible_cycles(self.source, cycles, subject.id),
                lambda choice: choice.name,
            ),
        )
        if not eligible:
            self._enter(WorkflowState.ABORTED)
            self.console.print_warning(ERROR_MESSAGES['no_cycles'])
            return None

        index = self._list("Select a cycle", [choice.name for choice in eligible])
        return eligible[index] if index is not None else None

    def fetch_reviews(self, choice: CycleChoice) -> List[Review]:
        return self._fetch(
            INFO_MESSAGES['fetching_reviews'].format(name=choice.name),
            lambda: self.source.list_reviews_by_url(choice.reviews_url, self.review_limit),
        )

    def run(self) -> Optional[SelectionResult]:
        subject = self.select_subject()
        if subject is None:
            return None

        self.console.print()
        choice = self.select_cycle(subject)
        if choice is None:
            return None

        self.console.print()
        reviews = self.fetch_reviews(choice)
        self._enter(WorkflowState.COMPLETE)
        return SelectionResult(subject=subject, cycle=choice, reviews=reviews)
