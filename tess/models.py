"""Domain models for review export data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def _ref_url(payload: Dict[str, Any], key: str) -> str:
    """Return the ``url`` of a nested list reference such as ``{"reviewees": {"url": ...}}``."""
    ref = payload.get(key) or {}
    return str(ref.get("url") or "")


def _ref_id(payload: Dict[str, Any], key: str) -> str:
    ref = payload.get(key) or {}
    return str(ref.get("id") or "")


class ReviewType(str, Enum):
    """Kind of review record."""

    PEER = "peer"
    SELF = "self"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ReviewType":
        """Map an API value onto a review type, case-insensitively."""
        value = (raw or "").strip().lower()
        for member in cls:
            if member.value == value:
                return member
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class User:
    """Lattice user, used both as a selectable option and as reviewer identity."""

    id: str
    name: str
    email: str = ""
    direct_reports_url: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "User":
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            direct_reports_url=_ref_url(payload, "directReports"),
        )


@dataclass(frozen=True, slots=True)
class Reviewee:
    """Entry of a review cycle's reviewee list."""

    id: str
    user_id: str
    reviews_url: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Reviewee":
        return cls(
            id=str(payload.get("id") or ""),
            user_id=_ref_id(payload, "user"),
            reviews_url=_ref_url(payload, "reviews"),
        )


@dataclass(frozen=True, slots=True)
class ReviewCycle:
    """Named, time-boxed feedback collection round."""

    id: str
    name: str
    reviewees_url: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ReviewCycle":
        return cls(
            id=str(payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            reviewees_url=_ref_url(payload, "reviewees"),
        )


@dataclass(frozen=True, slots=True)
class Question:
    """Review question; ``body`` may carry HTML markup."""

    id: str
    body: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Question":
        return cls(id=str(payload.get("id") or ""), body=str(payload.get("body") or ""))


@dataclass(frozen=True, slots=True)
class ReviewResponse:
    """Answer attached to a review record."""

    comment: Optional[str] = None
    choices: Tuple[str, ...] = ()
    rating: Optional[float] = None
    rating_label: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ReviewResponse":
        rating = payload.get("rating")
        return cls(
            comment=payload.get("comment"),
            choices=tuple(str(choice) for choice in payload.get("choices") or ()),
            rating=float(rating) if isinstance(rating, (int, float)) and not isinstance(rating, bool) else None,
            rating_label=payload.get("ratingString"),
        )

    @property
    def trimmed_comment(self) -> str:
        return (self.comment or "").strip()


@dataclass(frozen=True, slots=True)
class Review:
    """Single review record as fetched for a reviewee."""

    review_type: ReviewType
    question_id: str
    reviewer_id: str = ""
    response: Optional[ReviewResponse] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Review":
        response = payload.get("response")
        return cls(
            review_type=ReviewType.parse(payload.get("reviewType")),
            question_id=_ref_id(payload, "question"),
            reviewer_id=_ref_id(payload, "reviewer"),
            response=ReviewResponse.from_dict(response) if isinstance(response, dict) else None,
        )

    @property
    def is_self(self) -> bool:
        return self.review_type is ReviewType.SELF


@dataclass(frozen=True, slots=True)
class CycleChoice:
    """Review cycle that includes the selected subject, with that subject's reviews URL."""

    cycle: ReviewCycle
    reviews_url: str

    @property
    def name(self) -> str:
        return self.cycle.name


@dataclass(slots=True)
class SelectionResult:
    """Outcome of a completed selection workflow."""

    subject: User
    cycle: CycleChoice
    reviews: List[Review] = field(default_factory=list)


__all__ = [
    "CycleChoice",
    "Question",
    "Review",
    "ReviewCycle",
    "ReviewResponse",
    "ReviewType",
    "Reviewee",
    "SelectionResult",
    "User",
]
