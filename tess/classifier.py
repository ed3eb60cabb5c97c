"""Group review records by question and decide which peer records are renderable."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from .models import Review

__all__ = [
    "ClassifiedReviews",
    "QuestionGroups",
    "classify_reviews",
    "has_renderable_content",
    "prepare_reviews",
]


class QuestionGroups:
    """Records keyed by question ID, remembering first-seen question order.

    The question order is an append-if-absent sequence: adding a record for a
    question that is already known never moves that question.
    """

    def __init__(self) -> None:
        self._order: List[str] = []
        self._records: Dict[str, List[Review]] = {}

    def add(self, review: Review) -> None:
        records = self._records.get(review.question_id)
        if records is None:
            records = self._records[review.question_id] = []
            self._order.append(review.question_id)
        records.append(review)

    @property
    def order(self) -> Tuple[str, ...]:
        """Distinct question IDs in first-occurrence order."""
        return tuple(self._order)

    def records(self, question_id: str) -> Tuple[Review, ...]:
        return tuple(self._records.get(question_id, ()))

    def items(self) -> Iterator[Tuple[str, Tuple[Review, ...]]]:
        """Yield ``(question_id, records)`` pairs in question order."""
        for question_id in self._order:
            yield question_id, tuple(self._records[question_id])

    def filtered(self, keep: Callable[[Review], bool]) -> "QuestionGroups":
        """Return a copy holding only the records ``keep`` accepts.

        Questions left without records are dropped; the surviving questions
        keep their original relative order.
        """
        result = QuestionGroups()
        for _, records in self.items():
            for review in records:
                if keep(review):
                    result.add(review)
        return result

    def __len__(self) -> int:
        return len(self._order)

    def __bool__(self) -> bool:
        return bool(self._order)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._records


@dataclass(slots=True)
class ClassifiedReviews:
    """Peer and self buckets of one review list."""

    peer: QuestionGroups = field(default_factory=QuestionGroups)
    self_review: QuestionGroups = field(default_factory=QuestionGroups)


def classify_reviews(reviews: Iterable[Review]) -> ClassifiedReviews:
    """Partition records into self and peer buckets without dropping any.

    ``self`` records (case-insensitive) land in the self bucket; every other
    review type is treated as peer feedback.
    """
    classified = ClassifiedReviews()
    for review in reviews:
        if review.is_self:
            classified.self_review.add(review)
        else:
            classified.peer.add(review)
    return classified


def has_renderable_content(review: Review) -> bool:
    """Whether a peer record carries anything worth rendering.

    Applies to peer records only; self records are always rendered.
    """
    response = review.response
    if response is None:
        return False
    return bool(
        response.trimmed_comment
        or response.choices
        or response.rating is not None
        or response.rating_label is not None
    )


def prepare_reviews(reviews: Iterable[Review]) -> ClassifiedReviews:
    """Classify records and drop peer records without renderable content."""
    classified = classify_reviews(reviews)
    return ClassifiedReviews(
        peer=classified.peer.filtered(has_renderable_content),
        self_review=classified.self_review,
    )
