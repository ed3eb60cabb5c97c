"""Config command for the review export CLI."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.markup import escape

from ..config import CONFIG_FILE, Config

if TYPE_CHECKING:
    from ..console import Console


class ConfigCommand:
    """Handles configuration management commands."""

    def __init__(self, console: Console, path: Path = CONFIG_FILE):
        """Initialize the command.

        Args:
            console: Console instance for output
            path: Configuration file to read and update
        """
        self.console = console
        self.path = path

    def _load(self) -> Config:
        try:
            return Config.load(self.path)
        except ValueError as exc:
            self.console.print_error(exc)
            raise typer.Exit(code=1) from exc

    def show(self) -> None:
        """Display current configuration settings with the API key masked."""
        config = self._load()
        self.console.print(f"[label]Config file:[/] {escape(str(self.path))}")
        for section, values in config.to_display_dict().items():
            self.console.print(f"\n[accent]\\[{section}][/]")
            for key, value in values.items():
                self.console.print(f"  [label]{key}[/] = [value]{escape(str(value))}[/]")

    def set(self, key: str, value: str) -> None:
        """Set a configuration value.

        Examples:
            tess config set api.timeout 30
            tess config set export.upload_format pdf

        Raises:
            typer.Exit: If configuration update fails
        """
        config = self._load()
        try:
            config.set_value(key, value)
            config.dump(self.path)
        except ValueError as exc:
            self.console.print_error(exc)
            raise typer.Exit(code=1) from exc
        self.console.print(f"[success]✓ Configuration updated:[/] {escape(key)} = {escape(str(value))}")

    def get(self, key: str) -> None:
        """Get a configuration value.

        Raises:
            typer.Exit: If key not found
        """
        config = self._load()
        try:
            value = config.get_value(key)
        except ValueError as exc:
            self.console.print_error(exc)
            raise typer.Exit(code=1) from exc
        self.console.print(f"{key} = {value}", markup=False, highlight=False, soft_wrap=True)
