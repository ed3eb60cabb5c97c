"""Markdown to DOCX/PDF conversion through the ``pandoc`` executable."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List

from ..constants import LATEX_ENGINES, PDF_ENGINES, PDF_SANS_FONTS
from ..exceptions import ExportError

logger = logging.getLogger(__name__)

SANS_FONT_ENV = "TESS_PDF_SANS_FONT"


def has_pandoc() -> bool:
    return shutil.which("pandoc") is not None


def _run_pandoc(args: List[str]) -> None:
    if not has_pandoc():
        raise ExportError("pandoc not found in PATH", tool="pandoc")
    command = ["pandoc", *args]
    logger.debug("Running %s", " ".join(command))
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except OSError as exc:
        raise ExportError(f"pandoc could not be started: {exc}", tool="pandoc") from exc
    if result.returncode != 0:
        output = (result.stdout + result.stderr).strip()
        raise ExportError(f"pandoc failed (exit {result.returncode}): {output}", tool="pandoc")


def convert_to_docx(markdown_path: Path, output_path: Path) -> Path:
    """Convert GitHub-flavoured Markdown to DOCX.

    No metadata title is set; the document's H1 already serves as the title
    and a second one would show up after a Google Docs import.
    """
    _run_pandoc(["-f", "gfm", "-t", "docx", "-o", str(output_path), str(markdown_path)])
    return output_path


def pick_pdf_engine(preferred: str = "") -> str:
    """Return ``preferred`` if installed, else the first installed known engine, else ``""``."""
    preferred = preferred.strip()
    if preferred and shutil.which(preferred):
        return preferred
    for engine in PDF_ENGINES:
        if shutil.which(engine):
            return engine
    return ""


def sans_font() -> str:
    font = os.getenv(SANS_FONT_ENV, "").strip()
    if font:
        return font
    return PDF_SANS_FONTS.get(sys.platform, PDF_SANS_FONTS['default'])


def convert_to_pdf(markdown_path: Path, output_path: Path, engine: str = "") -> Path:
    """Convert GitHub-flavoured Markdown to PDF.

    LaTeX engines are switched to a sans-serif main font through template
    variables plus a temporary header file, removed once pandoc exits.
    """
    chosen = pick_pdf_engine(engine)
    args = ["-f", "gfm", "-t", "pdf", "-o", str(output_path), str(markdown_path)]
    if chosen:
        args.append(f"--pdf-engine={chosen}")

    if chosen not in LATEX_ENGINES:
        _run_pandoc(args)
        return output_path

    font = sans_font()
    args += ["-V", f"mainfont={font}", "-V", f"sansfont={font}", "-V", "familydefault=sf"]
    header = (
        "\\usepackage{fontspec}\n"
        f"\\setmainfont{{{font}}}\n"
        f"\\setsansfont{{{font}}}\n"
        "\\renewcommand{\\familydefault}{\\sfdefault}\n"
    )
    with tempfile.TemporaryDirectory(prefix="tess-pandoc-") as tmp:
        header_path = Path(tmp) / "header.tex"
        header_path.write_text(header, encoding="utf-8")
        _run_pandoc(args + ["-H", str(header_path)])
    return output_path


__all__ = ["convert_to_docx", "convert_to_pdf", "has_pandoc", "pick_pdf_engine", "sans_font"]
