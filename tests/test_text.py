from __future__ import annotations

import pytest

from tess.text import mask_text, sanitize_text, single_line


def test_sanitize_decodes_entities() -> None:
    assert sanitize_text("&amp;&#39;") == "&'"


def test_sanitize_folds_break_and_paragraph_tags() -> None:
    assert sanitize_text("a<br>b</p>c<p>d") == "a\nb\ncd"


def test_sanitize_removes_other_tags() -> None:
    assert sanitize_text('<strong>Great</strong> <a href="x">work</a>') == "Great work"


def test_sanitize_trims_lines_and_collapses_blank_runs() -> None:
    assert sanitize_text("\n\nfirst   \n\n\n\nsecond\t\n\n") == "first\n\nsecond"


def test_sanitize_empty_string() -> None:
    assert sanitize_text("") == ""


@pytest.mark.parametrize(
    "raw",
    [
        "&amp;&#39;",
        "a<br>b</p>c<p>d",
        "&amp;lt;b&amp;gt;bold",
        "<p>Hi</p>\n\n\n<br/>there  ",
        "x > y and 1 < 2",
        "  plain text  ",
        "line<br />\n<br>\n<br>next",
    ],
)
def test_sanitize_is_idempotent(raw: str) -> None:
    once = sanitize_text(raw)
    assert sanitize_text(once) == once


def test_mask_keeps_whitespace() -> None:
    masked = mask_text("Jane Doe: great job\n", True)

    assert masked == "▒▒▒▒ ▒▒▒▒ ▒▒▒▒▒ ▒▒▒\n"
    assert len(masked) == len("Jane Doe: great job\n")


@pytest.mark.parametrize("text", ["", "Jane Doe: great job\n", "▒ already", "tab\tsep"])
def test_mask_disabled_is_identity(text: str) -> None:
    assert mask_text(text, False) == text


def test_single_line() -> None:
    assert single_line("How did\nthey do?") == "How did they do?"
