"""Command line interface for exporting Lattice performance reviews."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from .config import CONFIG_FILE, Config
from .console import Console, stderr_console
from .constants import ERROR_MESSAGES
from .exceptions import TessError

app = typer.Typer(help="Export Lattice performance reviews of your direct reports to Markdown.")
config_app = typer.Typer(help="Manage configuration settings")
app.add_typer(config_app, name="config")

console = stderr_console()
output = Console()
logger = logging.getLogger(__name__)

CONFIG_ENV = "TESS_CONFIG"


def _config_option():
    return typer.Option(
        CONFIG_FILE,
        "--config",
        envvar=CONFIG_ENV,
        help="Path to the configuration file",
    )


def _load_config(path: Path) -> Config:
    try:
        return Config.load(path)
    except ValueError as exc:
        console.print_error(exc)
        console.print(ERROR_MESSAGES['config_missing'])
        raise typer.Exit(code=1) from exc


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output for debugging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-essential output",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """CLI entry-point callback for shared initialisation."""
    console.set_verbose(verbose)
    console.set_quiet(quiet)

    if no_color:
        os.environ["NO_COLOR"] = "1"
        console.no_color = True
        output.no_color = True

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@app.command()
def export(
    config_path: Path = _config_option(),
    censor: bool = typer.Option(
        False,
        "--censor",
        help="Mask reviewer names, scores and comments in the document",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        help="Directory for the Markdown file (defaults to export.output_dir)",
    ),
    rclone_folder_id: str = typer.Option(
        "",
        "--rclone-folder-id",
        help="Google Drive folder ID; when set, the document is converted and uploaded",
    ),
    rclone_remote: Optional[str] = typer.Option(
        None,
        "--rclone-remote",
        help="rclone remote name (defaults to export.rclone_remote)",
    ),
    upload_format: Optional[str] = typer.Option(
        None,
        "--upload-format",
        help="Upload format: docx (imported as a Google Doc) or pdf",
    ),
    pdf_engine: Optional[str] = typer.Option(
        None,
        "--pdf-engine",
        help="pandoc PDF engine, e.g. tectonic, xelatex, wkhtmltopdf",
    ),
    copy_templates: bool = typer.Option(
        False,
        "--copy-templates",
        help="Copy the hub, cover and review templates into the Drive folder",
    ),
    template_hub_id: Optional[str] = typer.Option(None, "--template-hub-id", help="Drive file ID of the hub template"),
    template_cover_id: Optional[str] = typer.Option(
        None, "--template-cover-id", help="Drive file ID of the cover template"
    ),
    template_review_id: Optional[str] = typer.Option(
        None, "--template-review-id", help="Drive file ID of the review template"
    ),
) -> None:
    """Pick a direct report and review cycle, then write their reviews to Markdown.

    Use the arrow keys (or j/k) to move, Enter to select and q or Esc to quit.
    """
    from .commands.export_command import ExportCommand, ExportOptions

    config = _load_config(config_path)
    options = ExportOptions(
        censor=censor,
        output_dir=output_dir,
        rclone_folder_id=rclone_folder_id,
        rclone_remote=rclone_remote,
        upload_format=upload_format,
        pdf_engine=pdf_engine,
        copy_templates=copy_templates,
        template_hub_id=template_hub_id,
        template_cover_id=template_cover_id,
        template_review_id=template_review_id,
    )

    command = ExportCommand(console, output)
    try:
        command.run(config, options)
    except TessError as exc:
        logger.debug("Export failed", exc_info=True)
        console.print_error(exc)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        console.print("\n[warning]Operation cancelled[/]")
        raise typer.Exit(code=0)


@app.command()
def init(
    config_path: Path = _config_option(),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        help="Lattice API key (stored in the system keyring)",
        hide_input=True,
    ),
    rclone_remote: Optional[str] = typer.Option(
        None,
        "--rclone-remote",
        help="Default rclone remote used for Drive uploads",
    ),
) -> None:
    """Store the API key securely and write the default configuration.

    Run this once before using other commands.
    """
    from .commands.init_command import InitCommand

    command = InitCommand(output, config_path)
    try:
        command.execute(api_key=api_key, rclone_remote=rclone_remote)
    except (KeyboardInterrupt, typer.Abort):
        console.print("\n[warning]Configuration cancelled by user.[/]")
        raise typer.Exit(code=0)


@app.command()
def doctor(config_path: Path = _config_option()) -> None:
    """Check configuration, API access and the optional pandoc/rclone tools."""
    from .commands.doctor_command import DoctorCommand

    command = DoctorCommand(output, config_path)
    raise typer.Exit(code=command.run())


@config_app.command("show")
def show_config(config_path: Path = _config_option()) -> None:
    """Display current configuration settings.

    The API key is masked.
    """
    from .commands.config_command import ConfigCommand

    ConfigCommand(output, config_path).show()


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key in dot notation (e.g. api.timeout)"),
    value: str = typer.Argument(..., help="Value to set"),
    config_path: Path = _config_option(),
) -> None:
    """Set a configuration value.

    Examples:
        tess config set api.timeout 30
        tess config set export.rclone_remote work-drive
    """
    from .commands.config_command import ConfigCommand

    ConfigCommand(output, config_path).set(key, value)


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Configuration key in dot notation (e.g. export.upload_format)"),
    config_path: Path = _config_option(),
) -> None:
    """Get a configuration value."""
    from .commands.config_command import ConfigCommand

    ConfigCommand(output, config_path).get(key)


if __name__ == "__main__":  # pragma: no cover
    app()
