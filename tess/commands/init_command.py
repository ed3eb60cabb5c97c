"""Init command for the review export CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.markup import escape

from ..config import CONFIG_FILE, Config, mask_token
from ..exceptions import ExportError
from ..export import create_drive_remote, has_pandoc, rclone_available, remote_exists, run_rclone_config

if TYPE_CHECKING:
    from ..console import Console


class InitCommand:
    """Handles first-time setup: API key, rclone remote and tool hints."""

    def __init__(self, console: Console, path: Path = CONFIG_FILE):
        """Initialize the command.

        Args:
            console: Console instance for output
            path: Configuration file to create or update
        """
        self.console = console
        self.path = path

    def execute(
        self,
        api_key: Optional[str] = None,
        rclone_remote: Optional[str] = None,
        interactive: Optional[bool] = None,
    ) -> None:
        """Store the API key and default remote, then offer to set up rclone.

        Interactive mode: Run without options to be prompted for each value.
        Blank answers keep the currently stored values.

        Raises:
            typer.Exit: If the configuration cannot be loaded or saved
        """
        is_interactive = sys.stdin.isatty() if interactive is None else interactive

        try:
            config = Config.load(self.path)
        except ValueError as exc:
            self.console.print_error(exc)
            raise typer.Exit(code=1) from exc

        try:
            current_key = config.get_api_key() or ""
        except RuntimeError:
            current_key = ""

        self.console.print("[title]Tess setup[/]\n")

        if api_key is None and is_interactive:
            hint = f" [{mask_token(current_key)}]" if current_key else ""
            api_key = typer.prompt(
                f"Lattice API key{hint}", default="", show_default=False, hide_input=True
            )
        api_key = (api_key or "").strip()
        migrating = not api_key and bool(config.legacy_api_key) and current_key == config.legacy_api_key
        if migrating:
            api_key = config.legacy_api_key

        if rclone_remote is None and is_interactive:
            rclone_remote = typer.prompt("Default rclone remote", default=config.export.rclone_remote)
        rclone_remote = (rclone_remote or "").strip()

        if api_key:
            try:
                config.update_auth(api_key)
            except RuntimeError as exc:
                self.console.print_error(exc)
                raise typer.Exit(code=1) from exc
            config.legacy_api_key = None
            if migrating:
                self.console.print("Moved the plain-text api_key from the config file into the keyring.")
        elif not current_key:
            self.console.print_warning("No API key stored yet; 'tess export' will not run until one is set.")

        if rclone_remote:
            config.export.rclone_remote = rclone_remote
        config.dump(self.path)
        self.console.print(f"[success]✓ Saved config to[/] {escape(str(self.path))}")

        if is_interactive:
            self._offer_rclone_setup(config.export.rclone_remote)

        if not has_pandoc():
            self.console.print("\nTip: install pandoc for DOCX/PDF export: https://pandoc.org")

        self.console.print("\nNext steps:")
        self.console.print("  - Run: tess doctor")
        self.console.print("  - Export: tess export --rclone-folder-id <FOLDER_ID>")

    def _offer_rclone_setup(self, remote: str) -> None:
        if not remote or not rclone_available():
            return
        try:
            if remote_exists(remote):
                return
        except ExportError as exc:
            self.console.print_warning(str(exc))
            return

        if not typer.confirm(f"rclone remote '{remote}' not found. Create it now?", default=True):
            return

        try:
            create_drive_remote(remote)
        except ExportError:
            self.console.print_warning("Automatic remote creation failed; opening the rclone config wizard.")
            try:
                run_rclone_config()
            except ExportError as exc:
                self.console.print_error(exc)
