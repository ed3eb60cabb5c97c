"""Export command: select a report and cycle, render, write and optionally upload."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..api_client import LatticeApiClient
from ..config import Config
from ..console import Console
from ..constants import ERROR_MESSAGES, INFO_MESSAGES
from ..exceptions import ConfigurationError
from ..export import UploadRequest, copy_templates, rclone_available, upload_document
from ..filenames import output_file_name
from ..renderer import build_document, write_document
from ..selection import SelectionWorkflow
from ..spinner import run_with_spinner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportOptions:
    """Command-line overrides; ``None`` means "use the configured value"."""

    censor: bool = False
    output_dir: Optional[Path] = None
    rclone_folder_id: str = ""
    rclone_remote: Optional[str] = None
    upload_format: Optional[str] = None
    pdf_engine: Optional[str] = None
    copy_templates: bool = False
    template_hub_id: Optional[str] = None
    template_cover_id: Optional[str] = None
    template_review_id: Optional[str] = None


class ExportCommand:
    """Runs the interactive export from selection to the written file."""

    def __init__(
        self,
        console: Console,
        output: Console,
        client_factory: Callable[[Config], LatticeApiClient] = LatticeApiClient,
        workflow_factory: Callable[..., SelectionWorkflow] = SelectionWorkflow,
    ):
        """Initialize the command.

        Args:
            console: Console for progress and diagnostics (stderr)
            output: Console for the final summary lines (stdout)
            client_factory: Builds the API client from the configuration
            workflow_factory: Builds the selection workflow
        """
        self.console = console
        self.output = output
        self.client_factory = client_factory
        self.workflow_factory = workflow_factory

    def run(self, config: Config, options: ExportOptions) -> Optional[Path]:
        """Run the export and return the written path, or None if nothing was selected.

        Raises:
            ConfigurationError: If the API key is missing
            SelectionError: If fetching users, cycles or reviews fails
            PersistenceError: If the document cannot be written
            ExportError: If conversion or upload fails
        """
        try:
            config.validate_required_fields()
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        with self.client_factory(config) as client:
            workflow = self.workflow_factory(client, self.console, review_limit=config.api.review_limit)
            selection = workflow.run()
            if selection is None:
                return None

            subject_name = selection.subject.name
            cycle_name = selection.cycle.name
            logger.debug("Rendering %d reviews for %s (%s)", len(selection.reviews), subject_name, cycle_name)
            document = run_with_spinner(
                self.console,
                INFO_MESSAGES['rendering'],
                lambda: build_document(client, subject_name, cycle_name, selection.reviews, options.censor),
            )

        output_dir = options.output_dir or Path(config.export.output_dir or ".")
        path = write_document(output_dir / output_file_name(subject_name, cycle_name), document)

        uploaded_link = ""
        if options.rclone_folder_id.strip():
            request = UploadRequest(
                title=f"{subject_name} ({cycle_name})",
                folder_id=options.rclone_folder_id.strip(),
                remote=self._remote(config, options),
                upload_format=options.upload_format or config.export.upload_format,
                pdf_engine=options.pdf_engine if options.pdf_engine is not None else config.export.pdf_engine,
            )
            uploaded_link = upload_document(self.console, path, request) or ""

        self.output.print()
        self.output.print(f"Wrote {path}", markup=False, highlight=False, soft_wrap=True)
        if uploaded_link.strip():
            self.output.print(f"Uploaded {uploaded_link}", markup=False, highlight=False, soft_wrap=True)

        if options.copy_templates:
            self._copy_templates(config, options)

        return path

    @staticmethod
    def _remote(config: Config, options: ExportOptions) -> str:
        return (options.rclone_remote or "").strip() or config.export.rclone_remote

    def _copy_templates(self, config: Config, options: ExportOptions) -> None:
        self.output.print()
        if not options.rclone_folder_id.strip():
            self.console.print_error(ERROR_MESSAGES['templates_need_folder'])
            return
        if not rclone_available():
            self.console.print_error("rclone not found; cannot copy templates")
            return

        templates = [
            ("Hub", options.template_hub_id if options.template_hub_id is not None else config.templates.hub_id),
            ("Cover", options.template_cover_id if options.template_cover_id is not None else config.templates.cover_id),
            ("Review", options.template_review_id if options.template_review_id is not None else config.templates.review_id),
        ]
        copy_templates(self.console, self._remote(config, options), options.rclone_folder_id.strip(), templates)
