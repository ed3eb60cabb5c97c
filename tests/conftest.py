from __future__ import annotations

import io
from typing import Dict, List, Optional

import keyring
import pytest

from tess.console import Console
from tess.exceptions import ApiError
from tess.models import Question, Review, ReviewCycle, Reviewee, ReviewResponse, ReviewType, User


class FakeSource:
    """In-memory stand-in for the Lattice API client."""

    def __init__(
        self,
        me: Optional[User] = None,
        reports: Optional[List[User]] = None,
        cycles: Optional[List[ReviewCycle]] = None,
        reviewees: Optional[Dict[str, List[Reviewee]]] = None,
        reviews: Optional[Dict[str, List[Review]]] = None,
        questions: Optional[Dict[str, Question]] = None,
        users: Optional[Dict[str, User]] = None,
    ) -> None:
        self.me = me or User(id="mgr", name="Manager", direct_reports_url="/v1/user/mgr/directReports")
        self.reports = reports or []
        self.cycles = cycles or []
        self.reviewees = reviewees or {}
        self.reviews = reviews or {}
        self.questions = questions or {}
        self.users = users or {}
        self.calls: List[tuple] = []
        self.closed = False

    def __enter__(self) -> "FakeSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def get_me(self) -> User:
        self.calls.append(("get_me",))
        return self.me

    def list_direct_reports(self, manager: User) -> List[User]:
        self.calls.append(("list_direct_reports", manager.id))
        return list(self.reports)

    def list_review_cycles(self) -> List[ReviewCycle]:
        self.calls.append(("list_review_cycles",))
        return list(self.cycles)

    def list_reviewees_by_url(self, url: str) -> List[Reviewee]:
        self.calls.append(("list_reviewees_by_url", url))
        found = self.reviewees.get(url)
        if isinstance(found, Exception):
            raise found
        return list(found or [])

    def list_reviews_by_url(self, url: str, limit: int) -> List[Review]:
        self.calls.append(("list_reviews_by_url", url, limit))
        return list(self.reviews.get(url, []))

    def get_question(self, question_id: str) -> Question:
        self.calls.append(("get_question", question_id))
        if question_id not in self.questions:
            raise ApiError("http 404: not found", 404)
        return self.questions[question_id]

    def get_user(self, user_id: str) -> User:
        self.calls.append(("get_user", user_id))
        if user_id not in self.users:
            raise ApiError("http 404: not found", 404)
        return self.users[user_id]


def make_review(
    review_type: str,
    question_id: str,
    reviewer_id: str = "",
    comment: Optional[str] = None,
    choices: tuple = (),
    rating: Optional[float] = None,
    rating_label: Optional[str] = None,
    with_response: bool = True,
) -> Review:
    response = None
    if with_response:
        response = ReviewResponse(comment=comment, choices=tuple(choices), rating=rating, rating_label=rating_label)
    return Review(
        review_type=ReviewType.parse(review_type),
        question_id=question_id,
        reviewer_id=reviewer_id,
        response=response,
    )


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def review():
    return make_review


@pytest.fixture(autouse=True)
def memory_keyring(monkeypatch):
    """Keep tests away from the real system keyring."""
    store: Dict[tuple, str] = {}

    def get_password(service: str, username: str) -> Optional[str]:
        return store.get((service, username))

    def set_password(service: str, username: str, password: str) -> None:
        store[(service, username)] = password

    monkeypatch.setattr(keyring, "get_password", get_password)
    monkeypatch.setattr(keyring, "set_password", set_password)
    monkeypatch.delenv("TESS_API_KEY", raising=False)
    return store
