"""Rich console pre-configured for the review export CLI."""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.theme import Theme

_default_theme = Theme(
    {
        "accent": "bold rgb(255,149,0)",
        "muted": "dim",
        "info": "rgb(120,200,255)",
        "title": "bold rgb(120,200,255)",
        "label": "bold rgb(160,160,160)",
        "value": "rgb(240,240,240)",
        "success": "bold rgb(104,255,203)",
        "warning": "bold rgb(255,213,128)",
        "danger": "bold rgb(255,128,128)",
        "divider": "rgb(85,85,85)",
    }
)


class Console(RichConsole):
    """Rich console pre-configured with a custom theme.

    Status and progress output goes to stderr by default so that stdout only
    carries the final summary lines.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:  # noqa: D401 - mirror rich API
        disable_theme = os.getenv("TESS_NO_THEME", "").lower() in ("1", "true", "yes")
        theme = kwargs.pop("theme", None) or (None if disable_theme else _default_theme)
        super().__init__(*args, theme=theme, **kwargs)
        self._verbose = False
        self._quiet = False

    def set_verbose(self, verbose: bool) -> None:
        """Enable or disable verbose output."""
        self._verbose = verbose

    def set_quiet(self, quiet: bool) -> None:
        """Enable or disable quiet mode."""
        self._quiet = quiet

    def is_verbose(self) -> bool:
        """Check if verbose mode is enabled."""
        return self._verbose

    def is_quiet(self) -> bool:
        """Check if quiet mode is enabled."""
        return self._quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print with respect to quiet mode."""
        if not self._quiet:
            super().print(*args, **kwargs)

    def log(self, *args: Any, **kwargs: Any) -> None:
        """Log with respect to verbose mode."""
        if self._verbose and not self._quiet:
            super().log(*args, **kwargs)

    def print_error(self, error: Exception | str, context: str = "") -> None:
        """Print error message with consistent formatting.

        Errors are printed even in quiet mode.

        Args:
            error: Exception instance or error message string
            context: Optional context prefix (e.g., "Upload failed:")
        """
        if context:
            super().print(f"[danger]{escape(context)}[/] {escape(str(error))}")
        else:
            super().print(f"[danger]Error:[/] {escape(str(error))}")

    def print_success(self, message: str) -> None:
        """Print success message with consistent formatting."""
        self.print(f"[success]{escape(message)}[/]")

    def print_warning(self, message: str) -> None:
        """Print warning message with consistent formatting."""
        self.print(f"[warning]{escape(message)}[/]")


def stderr_console() -> Console:
    """Console bound to stderr for status lines and diagnostics."""
    return Console(stderr=True)


__all__ = ["Console", "stderr_console"]
