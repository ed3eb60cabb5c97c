"""Export Lattice performance reviews for a direct report into a Markdown document."""

__version__ = "0.3.0"
