"""Custom exceptions for the review export tool."""

from __future__ import annotations


class TessError(Exception):
    """Base exception for all review export errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TessError):
    """Raised when credentials or settings are missing or invalid."""
    pass


# =============================================================================
# Remote API Errors
# =============================================================================


class AuthenticationError(TessError):
    """Raised when the review API rejects the configured key."""
    pass


class ApiError(TessError):
    """Raised when a review API request fails."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code if available
        """
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Workflow Errors
# =============================================================================


class SelectionError(TessError):
    """Raised when a fetching stage of the selection workflow fails."""

    def __init__(self, message: str, stage: str | None = None):
        """Initialize selection error.

        Args:
            message: Error message
            stage: Title of the stage that failed (e.g. 'Loading review cycles...')
        """
        super().__init__(message)
        self.stage = stage


# =============================================================================
# Output Errors
# =============================================================================


class PersistenceError(TessError):
    """Raised when the rendered document cannot be written."""
    pass


class ExportError(TessError):
    """Raised when converting or uploading the document fails."""

    def __init__(self, message: str, tool: str | None = None):
        """Initialize export error.

        Args:
            message: Error message
            tool: External program that failed (e.g. 'pandoc', 'rclone')
        """
        super().__init__(message)
        self.tool = tool
