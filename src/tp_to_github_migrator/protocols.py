"""Protocols for the pluggable collaborators of the migration.

HTML to Markdown conversion is a strategy handed to the normalizer at
construction time, so tests can pass a deterministic fake instead of touching
process-wide state.
"""

from __future__ import annotations

from typing import Protocol


class MarkdownConverter(Protocol):
    """Converts a TargetProcess HTML description to GitHub flavoured Markdown."""

    def convert(self, html: str) -> str:
        """Return the Markdown rendering of ``html``."""
        ...
