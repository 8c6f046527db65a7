"""Run settings: credentials, target repository and optional integrations.

Every value is taken from an explicit argument first, then from its environment
variable. Secrets can additionally be read from the ``pass`` password store.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlparse

from . import utils
from .exceptions import ConfigError

logger: logging.Logger = logging.getLogger(__name__)

_GITHUB_TOKEN_ENV_VARS: Final[tuple[str, ...]] = ("GITHUB_ACCESS_TOKEN", "GITHUB_TOKEN")
_DEFAULT_GITHUB_TOKEN_PASS_PATH: Final[str] = "github/cli/token"  # noqa: S105


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _pass_value(pass_path: str, what: str) -> str:
    try:
        return utils.get_pass_value(pass_path)
    except (ValueError, utils.PassError) as e:
        msg = f"Could not read the {what} from pass at '{pass_path}': {e}"
        raise ConfigError(msg) from e


def get_github_token(pass_path: str | None = None) -> str | None:
    """Get GitHub token from pass path, env vars, or the default pass location."""
    if pass_path:
        return _pass_value(pass_path, "GitHub token")

    for name in _GITHUB_TOKEN_ENV_VARS:
        token = _env(name)
        if token:
            return token

    try:
        return utils.get_pass_value(_DEFAULT_GITHUB_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError):
        logger.warning("No GitHub token specified nor found")
        return None


def get_tp_password(pass_path: str | None = None) -> str | None:
    """Get the TargetProcess password from a pass path or TP_PASSWORD."""
    if pass_path:
        return _pass_value(pass_path, "TargetProcess password")
    return _env("TP_PASSWORD")


@dataclass
class Settings:
    """Everything a migration run needs to know before touching the network."""

    tp_base_url: str
    tp_username: str
    tp_password: str
    github_token: str
    github_repo: str
    team_id: int | None = None
    github_org: str | None = None
    assignee_map_path: str | None = None
    board_name: str | None = None
    estimate_field: str | None = None
    attachment_branch: str | None = None

    @property
    def repo_owner(self) -> str:
        return self.github_repo.split("/", 1)[0]

    @property
    def org(self) -> str:
        """Organization owning the project board; defaults to the repository owner."""
        return self.github_org or self.repo_owner

    def validate(self) -> None:
        """Fail fast on missing or malformed settings."""
        if not self.tp_base_url:
            msg = "TP_BASE_URL is required"
            raise ConfigError(msg)
        parsed = urlparse(self.tp_base_url)
        if not parsed.scheme or not parsed.netloc:
            msg = f"TP_BASE_URL is not a valid URL: {self.tp_base_url!r}"
            raise ConfigError(msg)
        if not self.tp_username:
            msg = "TP_USERNAME is required"
            raise ConfigError(msg)
        if not self.tp_password:
            msg = "TP_PASSWORD is required"
            raise ConfigError(msg)
        if not self.github_token:
            msg = "GITHUB_ACCESS_TOKEN is required"
            raise ConfigError(msg)

        parts = self.github_repo.split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            msg = f"Invalid GitHub repository path: {self.github_repo!r}. Expected format: 'owner/repository'"
            raise ConfigError(msg)

        if self.estimate_field and not self.board_name:
            msg = "An estimate field requires a project board name"
            raise ConfigError(msg)

    @classmethod
    def load(
        cls,
        *,
        team_id: str | int | None = None,
        github_repo: str | None = None,
        github_org: str | None = None,
        assignee_map_path: str | None = None,
        board_name: str | None = None,
        estimate_field: str | None = None,
        attachment_branch: str | None = None,
        tp_password_pass_path: str | None = None,
        github_token_pass_path: str | None = None,
    ) -> Settings:
        """Collect settings from arguments and environment, then validate them."""
        raw_team = team_id if team_id is not None else _env("TP_TEAM_ID")
        parsed_team: int | None = None
        if raw_team is not None:
            try:
                parsed_team = int(raw_team)
            except ValueError as e:
                msg = f"TP team id must be numeric, got {raw_team!r}"
                raise ConfigError(msg) from e

        settings = cls(
            tp_base_url=(_env("TP_BASE_URL") or "").rstrip("/"),
            tp_username=_env("TP_USERNAME") or "",
            tp_password=get_tp_password(tp_password_pass_path) or "",
            github_token=get_github_token(github_token_pass_path) or "",
            github_repo=(github_repo or _env("GITHUB_REPO") or "").strip(),
            team_id=parsed_team,
            github_org=github_org or _env("GITHUB_ORG"),
            assignee_map_path=assignee_map_path or _env("TP_ASSIGNEE_MAP"),
            board_name=board_name or _env("GITHUB_PROJECT_NAME"),
            estimate_field=estimate_field or _env("GITHUB_ESTIMATE_FIELD"),
            attachment_branch=attachment_branch or _env("GITHUB_ATTACHMENT_BRANCH"),
        )
        settings.validate()
        return settings
