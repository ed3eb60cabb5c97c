from __future__ import annotations

from tess.classifier import QuestionGroups, classify_reviews, has_renderable_content, prepare_reviews


def test_question_order_is_first_occurrence(review) -> None:
    records = [review("self", qid, comment=qid) for qid in ("Q2", "Q1", "Q2", "Q3")]

    classified = classify_reviews(records)

    assert classified.self_review.order == ("Q2", "Q1", "Q3")
    assert [r.response.comment for r in classified.self_review.records("Q2")] == ["Q2", "Q2"]
    assert not classified.peer


def test_peer_order_matches_self_order(review) -> None:
    records = [review("peer", qid, comment="ok") for qid in ("Q2", "Q1", "Q2", "Q3")]

    assert classify_reviews(records).peer.order == ("Q2", "Q1", "Q3")


def test_classification_is_case_insensitive_and_keeps_every_record(review) -> None:
    records = [
        review("SELF", "Q1"),
        review("peer", "Q1"),
        review("manager", "Q2"),
        review("", "Q3", with_response=False),
    ]

    classified = classify_reviews(records)

    assert classified.self_review.order == ("Q1",)
    assert classified.peer.order == ("Q1", "Q2", "Q3")
    total = sum(len(recs) for _, recs in classified.peer.items()) + sum(
        len(recs) for _, recs in classified.self_review.items()
    )
    assert total == len(records)


def test_blank_peer_response_is_not_renderable(review) -> None:
    assert not has_renderable_content(review("peer", "Q1", comment="  "))
    assert not has_renderable_content(review("peer", "Q1", with_response=False))


def test_peer_response_with_content_is_renderable(review) -> None:
    assert has_renderable_content(review("peer", "Q1", choices=("Strongly agree",)))
    assert has_renderable_content(review("peer", "Q1", comment=" fine "))
    assert has_renderable_content(review("peer", "Q1", rating=0.0))
    assert has_renderable_content(review("peer", "Q1", rating_label=""))


def test_prepare_drops_empty_peer_questions_but_keeps_self(review) -> None:
    records = [
        review("peer", "Q1", comment="  "),
        review("peer", "Q2", comment="Solid"),
        review("peer", "Q2", with_response=False),
        review("self", "Q1", with_response=False),
    ]

    prepared = prepare_reviews(records)

    assert prepared.peer.order == ("Q2",)
    assert len(prepared.peer.records("Q2")) == 1
    assert prepared.self_review.order == ("Q1",)
    assert prepared.self_review.records("Q1")[0].response is None


def test_filtered_keeps_relative_order(review) -> None:
    groups = QuestionGroups()
    for qid, comment in (("Q3", "x"), ("Q1", ""), ("Q2", "y"), ("Q1", "z")):
        groups.add(review("peer", qid, comment=comment))

    kept = groups.filtered(has_renderable_content)

    assert kept.order == ("Q3", "Q1", "Q2")
    assert "Q1" in kept
    assert [r.response.comment for r in kept.records("Q1")] == ["z"]
