"""Conversion (pandoc) and upload (rclone) of rendered review documents."""

from .pandoc import convert_to_docx, convert_to_pdf, has_pandoc
from .rclone import (
    copy_by_id_to_folder,
    copy_to_and_link,
    create_drive_remote,
    rclone_available,
    remote_exists,
    run_rclone_config,
)
from .upload import UploadRequest, copy_templates, upload_document

__all__ = [
    "UploadRequest",
    "convert_to_docx",
    "convert_to_pdf",
    "copy_by_id_to_folder",
    "copy_templates",
    "copy_to_and_link",
    "create_drive_remote",
    "has_pandoc",
    "rclone_available",
    "remote_exists",
    "run_rclone_config",
    "upload_document",
]
