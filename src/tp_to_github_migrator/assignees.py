"""
Mapping of TargetProcess users to GitHub assignees.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger: logging.Logger = logging.getLogger(__name__)


def parse_assignee_mapping(lines: Iterable[str]) -> dict[str, str]:
    """Parse ``email=username`` lines into a lowercased-email mapping.

    Blank lines and ``#`` comments are ignored, as are lines without ``=`` or
    with an empty side.
    """
    mapping: dict[str, str] = {}
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        email, username = line.split("=", 1)
        email = email.strip().lower()
        username = username.strip()
        if email and username:
            mapping[email] = username
    return mapping


def load_assignee_mapping(file_path: str | Path | None) -> dict[str, str]:
    """Load the mapping file, returning an empty mapping when there is none."""
    if not file_path:
        return {}
    path = Path(file_path)
    if not path.is_file():
        logger.warning(f"Assignee mapping file {path} not found, no assignees will be set")
        return {}
    with path.open(encoding="utf-8") as f:
        mapping = parse_assignee_mapping(f)
    logger.debug(f"Loaded {len(mapping)} assignee mapping(s) from {path}")
    return mapping


class AssigneeResolver:
    """Projects TargetProcess user emails onto GitHub usernames."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping: dict[str, str] = {email.strip().lower(): user for email, user in mapping.items()}

    def resolve(self, emails: Iterable[str]) -> list[str]:
        """Return the GitHub usernames for ``emails``, deduplicated, in first-seen order.

        Unmapped emails are dropped with a warning.
        """
        usernames: list[str] = []
        for email in emails:
            username = self._mapping.get(str(email).strip().lower())
            if not username:
                logger.warning(f"No GitHub assignee mapping found for TP user: {email}")
                continue
            if username not in usernames:
                usernames.append(username)
        return usernames
