"""Google Drive uploads through an ``rclone`` remote."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..exceptions import ExportError

logger = logging.getLogger(__name__)


def rclone_available() -> bool:
    return shutil.which("rclone") is not None


def _require_rclone() -> None:
    if not rclone_available():
        raise ExportError("rclone not found in PATH", tool="rclone")


def _run(args: List[str], interactive: bool = False) -> subprocess.CompletedProcess:
    command = ["rclone", *args]
    logger.debug("Running %s", " ".join(command))
    try:
        if interactive:
            # Attached to the terminal so rclone can prompt and open a browser
            return subprocess.run(command)
        return subprocess.run(command, capture_output=True, text=True)
    except OSError as exc:
        raise ExportError(f"rclone could not be started: {exc}", tool="rclone") from exc


def _folder_flag(folder_id: str) -> List[str]:
    folder_id = folder_id.strip()
    return [f"--drive-root-folder-id={folder_id}"] if folder_id else []


def copy_to_and_link(
    remote: str,
    folder_id: str,
    source: Path,
    dest_name: str,
    import_format: str = "",
) -> str:
    """Copy ``source`` to ``remote:dest_name`` and return a shareable link.

    ``import_format`` (e.g. ``docx``) asks Drive to import the upload as a
    native Google Doc. The link lookup is best effort: an empty string is
    returned when ``rclone link`` fails.

    Raises:
        ExportError: If rclone is missing or the copy fails.
    """
    _require_rclone()
    target = f"{remote}:{dest_name}"
    args = ["copyto", str(source), target, *_folder_flag(folder_id)]
    if import_format.strip():
        args += ["--drive-import-formats", import_format.strip()]

    result = _run(args)
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        raise ExportError(f"rclone copyto failed (exit {result.returncode}): {output}", tool="rclone")

    link = _run(["link", target, *_folder_flag(folder_id)])
    if link.returncode != 0:
        logger.debug("rclone link failed for %s: %s", target, link.stderr.strip())
        return ""
    return link.stdout.strip()


def copy_by_id_to_folder(remote: str, folder_id: str, file_id: str) -> None:
    """Server-side copy of a Drive file into ``folder_id``, keeping its name and type.

    Raises:
        ExportError: If rclone is missing, ``folder_id`` is empty or the copy fails.
    """
    _require_rclone()
    if not folder_id.strip():
        raise ExportError("folder ID is empty", tool="rclone")

    destination = f"{remote},root_folder_id={folder_id.strip()}:"
    result = _run(["backend", "copyid", f"{remote}:", file_id, destination, "--drive-server-side-across-configs"])
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        raise ExportError(f"rclone backend copyid failed (exit {result.returncode}): {output}", tool="rclone")


def remote_exists(name: str) -> bool:
    """Whether an rclone remote called ``name`` is configured.

    Raises:
        ExportError: If rclone is missing or cannot list remotes.
    """
    _require_rclone()
    result = _run(["listremotes"])
    if result.returncode != 0:
        raise ExportError(f"rclone listremotes failed: {result.stderr.strip()}", tool="rclone")

    target = name.strip()
    if not target:
        return False
    remotes = {line.strip().removesuffix(":") for line in result.stdout.splitlines()}
    return target in remotes


def run_rclone_config() -> None:
    """Launch the interactive ``rclone config`` wizard on the current terminal."""
    _require_rclone()
    result = _run(["config"], interactive=True)
    if result.returncode != 0:
        raise ExportError(f"rclone config exited with status {result.returncode}", tool="rclone")


def create_drive_remote(name: str, scope: Optional[str] = "drive") -> None:
    """Create a Google Drive remote without the menu wizard.

    rclone may still open a browser window to complete OAuth.
    """
    _require_rclone()
    scope = (scope or "").strip() or "drive"
    result = _run(["config", "create", name, "drive", f"scope={scope}"], interactive=True)
    if result.returncode != 0:
        raise ExportError(f"rclone config create failed with status {result.returncode}", tool="rclone")


__all__ = [
    "copy_by_id_to_folder",
    "copy_to_and_link",
    "create_drive_remote",
    "rclone_available",
    "remote_exists",
    "run_rclone_config",
]
