"""Command implementations behind the ``tess`` CLI."""
