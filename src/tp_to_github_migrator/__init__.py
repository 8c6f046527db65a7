"""
TargetProcess to GitHub Migration Tool

Imports TargetProcess projects, epics, features and user stories as GitHub
issues, keeping hierarchy, assignees and attachments. Re-runs never duplicate
issues.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    AmbiguousMatchError,
    AttachmentContentError,
    BoardNotFoundError,
    ConfigError,
    DestinationApiError,
    MigrationError,
    SourceApiError,
)
from .orchestrator import MigrationOrchestrator, MigrationResult
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AmbiguousMatchError",
    "AttachmentContentError",
    "BoardNotFoundError",
    "ConfigError",
    "DestinationApiError",
    "MigrationError",
    "MigrationOrchestrator",
    "MigrationResult",
    "SourceApiError",
    "main",
    "setup_logging",
]
