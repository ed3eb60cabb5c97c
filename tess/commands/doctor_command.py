"""Environment diagnostics for the review export CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from rich.markup import escape

from ..api_client import LatticeApiClient
from ..config import CONFIG_FILE, Config, mask_token
from ..exceptions import ExportError, TessError
from ..export import has_pandoc, rclone_available, remote_exists

if TYPE_CHECKING:
    from ..console import Console


class DoctorCommand:
    """Inspects configuration, API access and optional tools."""

    def __init__(
        self,
        console: Console,
        path: Path = CONFIG_FILE,
        client_factory: Callable[[Config], LatticeApiClient] = LatticeApiClient,
    ):
        self.console = console
        self.path = path
        self.client_factory = client_factory

    def _ok(self, message: str) -> None:
        self.console.print(f"[success]✓[/] {escape(message)}")

    def _warn(self, message: str) -> None:
        self.console.print(f"[warning]![/] {escape(message)}")

    def _bad(self, message: str) -> None:
        self.console.print(f"[danger]✗[/] {escape(message)}")

    def run(self) -> int:
        """Print diagnostics and return the process exit status."""
        self.console.print("[title]Tess doctor[/]\n")
        self.console.print(f"Config path: {escape(str(self.path))}")

        try:
            config = Config.load(self.path)
        except ValueError as exc:
            self._bad(str(exc))
            self.console.print("Hint: run 'tess init' to create a config.")
            return 1
        self._ok("Loaded config" if self.path.exists() else "Using default settings (no config file)")

        try:
            api_key = config.get_api_key()
        except RuntimeError as exc:
            self._bad(str(exc))
            return 1
        if not api_key:
            self._bad("No API key configured")
            self.console.print("Hint: run 'tess init' to store your Lattice API key.")
            return 1
        self.console.print(f"- api_key: {mask_token(api_key)}", markup=False)
        self.console.print(f"- rclone_remote: {config.export.rclone_remote}", markup=False)

        try:
            with self.client_factory(config) as client:
                me = client.get_me()
        except TessError as exc:
            self._bad(f"Lattice API check failed: {exc}")
            self.console.print("- Ensure your key is valid; a missing 'Bearer' prefix is added automatically.")
        else:
            self._ok("Lattice API reachable and key accepted")
            self.console.print(f"- Current user: {me.name} ({me.email})", markup=False)

        self._check_rclone(config.export.rclone_remote)

        if has_pandoc():
            self._ok("pandoc found")
        else:
            self._warn("pandoc not found (DOCX/PDF export disabled). Install from https://pandoc.org")

        path_value = os.getenv("PATH", "")
        if "/usr/local/bin" not in path_value and "/opt/homebrew/bin" not in path_value:
            self._warn("/usr/local/bin or /opt/homebrew/bin not in PATH (Homebrew installs may not be visible)")

        self.console.print("\nAll done. If something looks off, try 'tess init'.")
        return 0

    def _check_rclone(self, remote: str) -> None:
        if not rclone_available():
            self._warn("rclone not found (Drive upload disabled). Install from https://rclone.org")
            return
        self._ok("rclone found")
        if not remote.strip():
            return
        try:
            exists = remote_exists(remote)
        except ExportError as exc:
            self._warn(f"could not verify rclone remotes: {exc}")
            return
        if exists:
            self._ok(f"rclone remote '{remote}' present")
        else:
            self._warn(f"rclone remote '{remote}' not found. Run 'rclone config' and create it (Storage: drive)")
