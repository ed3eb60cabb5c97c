from __future__ import annotations

import time
from typing import Iterable

import pytest

from tess.api_client import LatticeApiClient
from tess.config import Config
from tess.exceptions import ApiError, AuthenticationError, SelectionError
from tess.models import ReviewCycle, Reviewee, User
from tess.selection import (
    ListPicker,
    SelectionWorkflow,
    WorkflowState,
    filter_eligible_cycles,
    normalize_key,
    sort_by_name,
)
from tess.spinner import run_with_spinner


def keys(sequence: Iterable[str]):
    iterator = iter(sequence)
    return lambda: next(iterator)


# ---------------------------------------------------------------------------
# ListPicker
# ---------------------------------------------------------------------------


def test_picker_moves_and_clamps() -> None:
    picker = ListPicker("Select a user", ["a", "b", "c"])

    for key in ("up", "down", "j", "down", "down"):
        assert picker.handle_key(key) is False
    assert picker.cursor == 2

    picker.handle_key("k")
    assert picker.cursor == 1

    assert picker.handle_key("enter") is True
    assert picker.choice == 1
    assert not picker.aborted


@pytest.mark.parametrize("key", ["q", "esc", "ctrl+c"])
def test_picker_abort_keys(key: str) -> None:
    picker = ListPicker("Select", ["a"])

    assert picker.handle_key(key) is True
    assert picker.aborted
    assert picker.choice is None


def test_picker_ignores_unknown_keys() -> None:
    picker = ListPicker("Select", ["a", "b"])

    assert picker.handle_key("x") is False
    assert picker.cursor == 0


def test_picker_confirm_on_empty_list() -> None:
    picker = ListPicker("Select", [])

    picker.handle_key("down")
    assert picker.handle_key("enter") is True
    assert picker.choice is None
    assert not picker.aborted


def test_picker_view() -> None:
    picker = ListPicker("Select a cycle", ["2024 H1", "2024 H2"])
    picker.handle_key("down")

    assert picker.view() == "\nSelect a cycle (↑/↓, Enter, q):\n\n  2024 H1\n> 2024 H2"
    assert ListPicker("", []).view().startswith("\nSelect (")


def test_picker_pick_with_scripted_keys(console) -> None:
    picker = ListPicker("Select", ["a", "b", "c"])

    assert picker.pick(console, keys(["down", "down", "up", "enter"])) == 1


def test_normalize_key() -> None:
    assert normalize_key("\x1b[A") == "up"
    assert normalize_key("\x1b[B") == "down"
    assert normalize_key("\r") == "enter"
    assert normalize_key("\x1b") == "esc"
    assert normalize_key("\x03") == "ctrl+c"
    assert normalize_key("j") == "j"


def test_sort_by_name_is_case_insensitive() -> None:
    names = sort_by_name(["bob", "Alice", "carol"], lambda name: name)

    assert names == ["Alice", "bob", "carol"]


# ---------------------------------------------------------------------------
# Background fetch with spinner
# ---------------------------------------------------------------------------


def test_run_with_spinner_returns_result(console) -> None:
    def work() -> str:
        time.sleep(0.05)
        return "done"

    assert run_with_spinner(console, "Loading things...", work, tick_seconds=0.01) == "done"
    assert "✓ Loading things..." in console.file.getvalue()


def test_run_with_spinner_reraises_errors(console) -> None:
    def work() -> str:
        raise ApiError("http 500: boom", 500)

    with pytest.raises(ApiError, match="boom"):
        run_with_spinner(console, "Loading things...", work, tick_seconds=0.01)
    assert "✓" not in console.file.getvalue()


# ---------------------------------------------------------------------------
# Cycle eligibility
# ---------------------------------------------------------------------------


def test_filter_eligible_cycles_skips_failures_and_non_matches(fake_source) -> None:
    cycles = [
        ReviewCycle(id="c1", name="2024 H1", reviewees_url="/c1"),
        ReviewCycle(id="c2", name="Broken", reviewees_url="/c2"),
        ReviewCycle(id="c3", name="Someone else", reviewees_url="/c3"),
    ]
    source = fake_source(
        reviewees={
            "/c1": [Reviewee(id="r0", user_id="other"), Reviewee(id="r1", user_id="ada", reviews_url="/r1")],
            "/c2": ApiError("http 500: boom", 500),
            "/c3": [Reviewee(id="r2", user_id="other")],
        }
    )

    eligible = filter_eligible_cycles(source, cycles, "ada")

    assert [choice.name for choice in eligible] == ["2024 H1"]
    assert eligible[0].reviews_url == "/r1"


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


@pytest.fixture
def org(fake_source, review):
    ada = User(id="ada", name="Ada Lovelace")
    bob = User(id="bob", name="bob")
    return fake_source(
        reports=[bob, ada],
        cycles=[
            ReviewCycle(id="c2", name="2024 H2", reviewees_url="/c2"),
            ReviewCycle(id="c1", name="2024 H1", reviewees_url="/c1"),
            ReviewCycle(id="c3", name="Broken", reviewees_url="/c3"),
        ],
        reviewees={
            "/c1": [Reviewee(id="r1", user_id="ada", reviews_url="/reviews/ada/c1")],
            "/c2": [Reviewee(id="r2", user_id="bob", reviews_url="/reviews/bob/c2")],
            "/c3": AuthenticationError("rejected"),
        },
        reviews={"/reviews/ada/c1": [review("peer", "q1", comment="Great")]},
    )


def test_workflow_selects_subject_cycle_and_reviews(org, console) -> None:
    workflow = SelectionWorkflow(org, console, review_limit=25, key_reader=keys(["enter", "enter"]))

    result = workflow.run()

    assert result is not None
    assert result.subject.name == "Ada Lovelace"
    assert result.cycle.name == "2024 H1"
    assert len(result.reviews) == 1
    assert ("list_reviews_by_url", "/reviews/ada/c1", 25) in org.calls
    assert workflow.state is WorkflowState.COMPLETE
    assert "Selected: Ada Lovelace" in console.file.getvalue()


def test_workflow_abort_in_first_list(org, console) -> None:
    workflow = SelectionWorkflow(org, console, key_reader=keys(["down", "q"]))

    assert workflow.run() is None
    assert workflow.state is WorkflowState.ABORTED
    assert ("list_review_cycles",) not in org.calls
    assert "Selection cancelled." in console.file.getvalue()


def test_workflow_abort_in_second_list(org, console) -> None:
    workflow = SelectionWorkflow(org, console, key_reader=keys(["enter", "ctrl+c"]))

    assert workflow.run() is None
    assert not any(call[0] == "list_reviews_by_url" for call in org.calls)


def test_workflow_without_eligible_cycles(org, console) -> None:
    # bob sorts after Ada; his only cycle is 2024 H2
    org.reviewees["/c2"] = []
    workflow = SelectionWorkflow(org, console, key_reader=keys(["down", "enter"]))

    assert workflow.run() is None
    assert "No review cycles found" in console.file.getvalue()


def test_workflow_without_reports(fake_source, console) -> None:
    workflow = SelectionWorkflow(fake_source(), console, key_reader=keys([]))

    assert workflow.run() is None
    assert workflow.state is WorkflowState.ABORTED
    assert "No direct reports found" in console.file.getvalue()


def test_workflow_fetch_errors_become_selection_errors(org, console) -> None:
    def broken() -> list:
        raise ApiError("http 503: unavailable", 503)

    org.list_review_cycles = broken
    workflow = SelectionWorkflow(org, console, key_reader=keys(["enter"]))

    with pytest.raises(SelectionError) as excinfo:
        workflow.run()
    assert excinfo.value.stage == "Loading review cycles..."
    assert "unavailable" in str(excinfo.value)


def test_workflow_reviewee_without_reviews_url(fake_source, console) -> None:
    ada = User(id="ada", name="Ada Lovelace")
    source = fake_source(
        reports=[ada],
        cycles=[ReviewCycle(id="c1", name="2024 H1", reviewees_url="/c1")],
        reviewees={"/c1": [Reviewee(id="r1", user_id="ada")]},
    )
    source.list_reviews_by_url = LatticeApiClient(Config(), api_key="secret").list_reviews_by_url
    workflow = SelectionWorkflow(source, console, key_reader=keys(["enter", "enter"]))

    with pytest.raises(SelectionError) as excinfo:
        workflow.run()
    assert excinfo.value.stage == "Fetching reviews for cycle: 2024 H1..."
    assert "cannot be empty" in str(excinfo.value)


def test_workflow_prints_bracketed_names_literally(fake_source, review, console) -> None:
    ada = User(id="ada", name="Ada [/x]")
    source = fake_source(
        reports=[ada],
        cycles=[ReviewCycle(id="c1", name="[contractor] 2024", reviewees_url="/c1")],
        reviewees={"/c1": [Reviewee(id="r1", user_id="ada", reviews_url="/reviews/ada/c1")]},
        reviews={"/reviews/ada/c1": [review("peer", "q1", comment="Great")]},
    )
    workflow = SelectionWorkflow(source, console, key_reader=keys(["enter", "enter"]))

    result = workflow.run()

    assert result is not None
    output = console.file.getvalue()
    assert "Selected: Ada [/x]" in output
    assert "Selected: [contractor] 2024" in output
    assert "✓ Fetching reviews for cycle: [contractor] 2024..." in output
