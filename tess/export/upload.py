"""Convert a written review document and upload it to Google Drive."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..console import Console
from ..constants import ERROR_MESSAGES, EXPORT_DEFAULTS, INFO_MESSAGES
from ..exceptions import ExportError
from ..spinner import run_with_spinner
from .pandoc import convert_to_docx, convert_to_pdf, has_pandoc
from .rclone import copy_by_id_to_folder, copy_to_and_link, rclone_available

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadRequest:
    """Where and how a rendered document is uploaded."""

    title: str
    folder_id: str
    remote: str = EXPORT_DEFAULTS['rclone_remote']
    upload_format: str = EXPORT_DEFAULTS['upload_format']
    pdf_engine: str = ""

    @property
    def normalized_format(self) -> str:
        fmt = self.upload_format.strip().lower()
        return fmt if fmt in EXPORT_DEFAULTS['upload_formats'] else EXPORT_DEFAULTS['upload_format']


def upload_document(console: Console, markdown_path: Path, request: UploadRequest) -> Optional[str]:
    """Convert ``markdown_path`` and upload it, returning the shareable link.

    Returns ``None`` without uploading when pandoc is not installed, and
    ``""`` when the upload worked but no link could be retrieved.

    Raises:
        ExportError: If rclone is missing, or conversion or upload fails.
    """
    if not rclone_available():
        raise ExportError(ERROR_MESSAGES['rclone_missing'], tool="rclone")
    if not has_pandoc():
        console.print_warning(ERROR_MESSAGES['pandoc_missing'])
        return None

    fmt = request.normalized_format
    with tempfile.TemporaryDirectory(prefix="tess-export-") as tmp:
        converted = Path(tmp) / f"document.{fmt}"
        # A "/" in the title would make rclone create a subfolder
        title = request.title.replace("/", "-")
        if fmt == "pdf":
            run_with_spinner(
                console,
                INFO_MESSAGES['converting'].format(fmt="PDF"),
                lambda: convert_to_pdf(markdown_path, converted, request.pdf_engine),
            )
            # Plain file upload, no Drive import
            dest_name, import_format = f"{title}.pdf", ""
        else:
            run_with_spinner(
                console,
                INFO_MESSAGES['converting'].format(fmt="DOCX"),
                lambda: convert_to_docx(markdown_path, converted),
            )
            dest_name, import_format = title, "docx"

        return run_with_spinner(
            console,
            INFO_MESSAGES['uploading'].format(fmt=fmt.upper()),
            lambda: copy_to_and_link(request.remote, request.folder_id, converted, dest_name, import_format),
        )


def copy_templates(
    console: Console,
    remote: str,
    folder_id: str,
    templates: Sequence[Tuple[str, str]],
) -> List[str]:
    """Copy ``(name, file_id)`` template documents into the Drive folder.

    Templates without an ID are skipped; a failed copy is reported and the
    remaining templates are still attempted.

    Returns:
        Names of the templates that were copied.
    """
    copied: List[str] = []
    for name, file_id in templates:
        if not file_id.strip():
            continue
        try:
            run_with_spinner(
                console,
                INFO_MESSAGES['copying_template'].format(name=name),
                lambda file_id=file_id: copy_by_id_to_folder(remote, folder_id, file_id),
            )
        except ExportError as exc:
            console.print_error(exc, f"Failed to copy template {name}:")
            continue
        copied.append(name)
    return copied


__all__ = ["UploadRequest", "copy_templates", "upload_document"]
