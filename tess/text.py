"""Plain-text helpers for review responses: markup sanitizing and masking."""

from __future__ import annotations

import html

from .constants import BREAK_TAGS, DOCUMENT

__all__ = ["sanitize_text", "mask_text", "single_line"]


def _strip_tags(text: str) -> str:
    """Drop ``<...>`` spans; the first ``>`` closes a tag and stray ``>`` are dropped."""
    kept = []
    in_tag = False
    for char in text:
        if char == "<":
            in_tag = True
        elif char == ">":
            in_tag = False
        elif not in_tag:
            kept.append(char)
    return "".join(kept)


def _sanitize_once(text: str) -> str:
    text = html.unescape(text)
    for tag, replacement in BREAK_TAGS:
        text = text.replace(tag, replacement)
    text = _strip_tags(text)

    lines = []
    previous_blank = False
    for line in text.split("\n"):
        line = line.rstrip()
        blank = not line
        if blank and previous_blank:
            continue
        lines.append(line)
        previous_blank = blank
    return "\n".join(lines).strip("\n")


def sanitize_text(text: str) -> str:
    """Convert markup-bearing response text into clean plain text.

    Entities are decoded, ``<br>`` variants and ``</p>`` become line breaks,
    ``<p>`` disappears and any other tag span is removed. Trailing whitespace
    is dropped from every line, runs of blank lines collapse to one and
    leading/trailing blank lines are trimmed.

    Every step only ever shortens the text, so the pass is repeated until it
    stops changing anything. That makes the function idempotent even for
    doubly escaped input such as ``&amp;lt;``.
    """
    if not text:
        return text

    current = text
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def mask_text(text: str, censor: bool) -> str:
    """Replace every visible character with the mask glyph when ``censor`` is set.

    Whitespace, including line breaks, is preserved so the document layout is
    unchanged.
    """
    if not censor:
        return text
    glyph = DOCUMENT['mask_glyph']
    return "".join(char if char.isspace() else glyph for char in text)


def single_line(text: str) -> str:
    """Fold a multi-line string into a heading-safe single line."""
    return text.replace("\n", " ")
