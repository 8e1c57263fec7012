"""Incremental PROS depot builder for GitHub releases."""

__version__ = "0.1.0"
