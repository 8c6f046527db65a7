"""
Custom exception classes for the TargetProcess to GitHub migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigError(MigrationError):
    """Raised when credentials or settings are missing or invalid."""


class SourceApiError(MigrationError):
    """Raised when the TargetProcess API answers with a non-success status."""


class DestinationApiError(MigrationError):
    """Raised when a GitHub REST or GraphQL call fails."""


class AmbiguousMatchError(MigrationError):
    """Raised when a lookup that must be unique matches more than once."""


class BoardNotFoundError(MigrationError):
    """Raised when a project board or board field cannot be found."""


class AttachmentContentError(MigrationError):
    """Raised when downloaded attachment bytes are an error page in disguise."""
