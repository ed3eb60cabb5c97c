"""Deterministic output file names for rendered review documents."""

from __future__ import annotations

from .constants import OUTPUT_FILE

_SEPARATORS = frozenset(" -/\\")


def slugify(text: str) -> str:
    """Lowercase ``text`` keeping ASCII letters and digits.

    Spaces, hyphens and slashes become underscores, everything else is
    dropped, and leading/trailing underscores are trimmed.
    """
    slug = []
    for char in text.lower():
        if ("a" <= char <= "z") or ("0" <= char <= "9"):
            slug.append(char)
        elif char in _SEPARATORS:
            slug.append("_")
    return "".join(slug).strip("_")


def output_file_name(subject_name: str, cycle_name: str) -> str:
    """Build ``<first>_<last>_<cycle>.md`` from a subject and cycle name.

    >>> output_file_name("Ada Lovelace", "2024 H1")
    'ada_lovelace_2024_h1.md'
    """
    parts = subject_name.split()
    first = parts[0] if parts else OUTPUT_FILE['first_name_fallback']
    last = parts[-1] if len(parts) > 1 else ""
    return f"{slugify(first)}_{slugify(last)}_{slugify(cycle_name)}{OUTPUT_FILE['extension']}"


__all__ = ["output_file_name", "slugify"]
