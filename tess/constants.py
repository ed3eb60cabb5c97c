"""Constants shared across the review export tool."""

from __future__ import annotations

# =============================================================================
# API Configuration
# =============================================================================

API_DEFAULTS = {
    'base_url': 'https://api.latticehq.com/',
    'timeout': 15,
    'review_limit': 100,
    'error_body_limit': 8 << 10,
}

API_PATHS = {
    'me': '/v1/me',
    'review_cycles': '/v1/reviewCycles',
    'question': '/v1/question/{id}',
    'user': '/v1/user/{id}',
}

# Authorization values already carrying one of these schemes are sent verbatim
AUTH_SCHEMES = ('bearer ', 'basic ', 'token ', 'lattice ')

HTTP_STATUS = {
    'unauthorized': 401,
}

# =============================================================================
# Document Layout
# =============================================================================

DOCUMENT = {
    'peer_section': 'Peer Feedback',
    'self_section': 'Self Review',
    'divider': '---',
    'question_fallback': 'Question',
    'reviewer_fallback': 'Unknown',
    'empty_quote': '(no comment)',
    'choice_separator': ', ',
    'mask_glyph': '▒',
}

OUTPUT_FILE = {
    'extension': '.md',
    'first_name_fallback': 'user',
}

# Sanitizer tag table, applied in order after entity decoding
BREAK_TAGS = (
    ('<br>', '\n'),
    ('<br/>', '\n'),
    ('<br />', '\n'),
    ('</p>', '\n'),
    ('<p>', ''),
)

# =============================================================================
# Interactive Selection
# =============================================================================

SPINNER = {
    'name': 'dots',
    'tick_seconds': 0.1,
}

LIST_KEYS = {
    'up': ('up', 'k'),
    'down': ('down', 'j'),
    'confirm': ('enter',),
    'abort': ('q', 'esc', 'ctrl+c'),
}

# =============================================================================
# Document Export
# =============================================================================

EXPORT_DEFAULTS = {
    'rclone_remote': 'drive',
    'upload_format': 'docx',
    'upload_formats': ('docx', 'pdf'),
}

PDF_ENGINES = ('tectonic', 'xelatex', 'lualatex', 'pdflatex', 'wkhtmltopdf')
LATEX_ENGINES = ('tectonic', 'pdflatex', 'xelatex', 'lualatex')

PDF_SANS_FONTS = {
    'darwin': 'Helvetica Neue',
    'win32': 'Arial',
    'default': 'Noto Sans',
}

TEMPLATE_DEFAULTS = {
    'hub_id': '1HU2Jm_JLaLOLPR6V6HjPI4VzwzZRw_OCOvsT3rC_8G0',
    'cover_id': '1vX9gElaEXkQYReZTEb1151x1JnYDSw64eObiWjS7Sp4',
    'review_id': '1OLd7jgwsoKSFiTsiWtOjw9k_c9BfNhx0XRFdMYDaLP0',
}

# =============================================================================
# User-facing Messages
# =============================================================================

ERROR_MESSAGES = {
    'config_missing': 'Run [accent]tess init[/] to set up your configuration',
    'api_key_missing': "Lattice API key is not set. Run 'tess init' to configure.",
    'api_key_rejected': 'Lattice API rejected the provided key',
    'no_cycles': 'No review cycles found for the selected user',
    'no_reports': 'No direct reports found',
    'templates_need_folder': '--copy-templates requires --rclone-folder-id to be set',
    'rclone_missing': 'rclone not found in PATH; install from https://rclone.org',
    'pandoc_missing': (
        'pandoc not found; skipping Drive upload via rclone. '
        'Install pandoc to enable document export.'
    ),
}

INFO_MESSAGES = {
    'loading_me': 'Loading current user...',
    'loading_reports': 'Loading direct reports...',
    'loading_cycles': 'Loading review cycles...',
    'filtering_cycles': 'Filtering cycles for {name}...',
    'fetching_reviews': 'Fetching reviews for cycle: {name}...',
    'rendering': 'Generating markdown...',
    'converting': 'Converting to {fmt}...',
    'uploading': 'Uploading {fmt} via rclone...',
    'copying_template': 'Copying template: {name}...',
    'selection_cancelled': 'Selection cancelled.',
}
