"""Render classified review records into a Markdown document."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .classifier import ClassifiedReviews, prepare_reviews
from .constants import DOCUMENT
from .exceptions import PersistenceError, TessError
from .models import Question, Review, ReviewResponse, User
from .text import mask_text, sanitize_text, single_line

logger = logging.getLogger(__name__)

__all__ = [
    "ReviewLookup",
    "ReviewDocumentRenderer",
    "build_document",
    "format_score",
    "quote_text",
    "write_document",
]


class ReviewSource(Protocol):
    """Remote lookups the renderer needs to resolve IDs into display text."""

    def get_question(self, question_id: str) -> Question: ...

    def get_user(self, user_id: str) -> User: ...


class ReviewLookup:
    """Per-render cache of question and reviewer lookups.

    Each ID is fetched at most once; failed lookups are remembered as misses
    and resolve to ``None`` so the caller can fall back to placeholder text.
    """

    def __init__(self, source: ReviewSource) -> None:
        self._source = source
        self._questions: Dict[str, Optional[Question]] = {}
        self._users: Dict[str, Optional[User]] = {}

    def question(self, question_id: str) -> Optional[Question]:
        if question_id not in self._questions:
            try:
                self._questions[question_id] = self._source.get_question(question_id)
            except TessError as exc:
                logger.debug("Question lookup failed for %s: %s", question_id, exc)
                self._questions[question_id] = None
        return self._questions[question_id]

    def user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        if user_id not in self._users:
            try:
                self._users[user_id] = self._source.get_user(user_id)
            except TessError as exc:
                logger.debug("User lookup failed for %s: %s", user_id, exc)
                self._users[user_id] = None
        return self._users[user_id]


def format_score(response: ReviewResponse) -> str:
    """Score shown next to a reviewer: the rating label, else the numeric rating."""
    if response.rating_label:
        return response.rating_label
    if response.rating is not None:
        return f"{response.rating:.2f}"
    return ""


def quote_text(response: Optional[ReviewResponse]) -> str:
    """Sanitized quote for a record, or the empty-quote placeholder."""
    quote = ""
    if response is not None:
        if response.trimmed_comment:
            quote = sanitize_text(response.trimmed_comment)
        elif response.choices:
            quote = sanitize_text(DOCUMENT['choice_separator'].join(response.choices))
    if not quote.strip():
        return DOCUMENT['empty_quote']
    return quote


class ReviewDocumentRenderer:
    """Compose the peer and self sections of one review document.

    Output order depends only on the recorded first-occurrence question order
    and the record order inside each question, so identical inputs (and
    lookup results) always produce identical documents.
    """

    def __init__(self, lookup: ReviewLookup, censor: bool = False) -> None:
        self.lookup = lookup
        self.censor = censor

    def render(self, subject_name: str, cycle_name: str, classified: ClassifiedReviews) -> str:
        lines: List[str] = [f"# {subject_name} ({cycle_name})", ""]

        lines.extend([f"## {DOCUMENT['peer_section']}", ""])
        for question_id, records in classified.peer.items():
            lines.extend(self._heading(question_id))
            for review in records:
                lines.extend(self._attribution(review))
                lines.extend(self._quote(review.response))

        lines.extend([DOCUMENT['divider'], ""])

        lines.extend([f"## {DOCUMENT['self_section']}", ""])
        for question_id, records in classified.self_review.items():
            lines.extend(self._heading(question_id))
            for review in records:
                lines.extend(self._quote(review.response))

        return "\n".join(lines) + "\n"

    def _mask(self, text: str) -> str:
        return mask_text(text, self.censor)

    def _heading(self, question_id: str) -> List[str]:
        question = self.lookup.question(question_id)
        text = ""
        if question is not None:
            text = single_line(sanitize_text(question.body.strip())).strip()
        return [f"### {text or DOCUMENT['question_fallback']}", ""]

    def _attribution(self, review: Review) -> List[str]:
        reviewer = self.lookup.user(review.reviewer_id)
        name = reviewer.name if reviewer is not None and reviewer.name.strip() else DOCUMENT['reviewer_fallback']
        score = format_score(review.response) if review.response is not None else ""
        if score:
            return [f"{self._mask(name)} (score: {self._mask(score)}):", ""]
        return [f"{self._mask(name)}:", ""]

    def _quote(self, response: Optional[ReviewResponse]) -> List[str]:
        quoted = [f"> {line}" for line in self._mask(quote_text(response)).split("\n")]
        return quoted + [""]


def build_document(
    source: ReviewSource,
    subject_name: str,
    cycle_name: str,
    reviews: Iterable[Review],
    censor: bool = False,
) -> str:
    """Run the classify, filter and render pipeline for one subject and cycle.

    Lookups are cached for the duration of this call only.
    """
    classified = prepare_reviews(reviews)
    logger.debug(
        "Rendering %d peer and %d self questions for %s",
        len(classified.peer),
        len(classified.self_review),
        subject_name,
    )
    renderer = ReviewDocumentRenderer(ReviewLookup(source), censor=censor)
    return renderer.render(subject_name, cycle_name, classified)


def write_document(path: Path, text: str) -> Path:
    """Write ``text`` to ``path``, replacing any existing file.

    Raises:
        PersistenceError: If the directory or file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Failed to write {path}: {exc}") from exc
    logger.debug("Wrote %d bytes to %s", len(text.encode("utf-8")), path)
    return path
