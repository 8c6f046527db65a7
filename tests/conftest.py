"""
Pytest configuration and shared fakes.

The TargetProcess client is exercised through a mocked ``requests.Session`` and
GitHub through mocked PyGithub objects, so no test touches the network.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
from github import GithubException

from tp_to_github_migrator.models import EntityType, SourceEntity
from tp_to_github_migrator.target_process import TargetProcessClient

TP_BASE_URL = "https://example.tpondemand.com"


def tp_response(payload: Any = None, *, status: int = 200, content: bytes | None = None) -> Mock:  # noqa: ANN401
    """A fake ``requests.Response``."""
    response = Mock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = str(payload)
    response.content = content if content is not None else b""
    return response


def github_issue(number: int, body: str = "", title: str = "Title") -> Mock:
    """A fake PyGithub ``Issue``."""
    issue = Mock()
    issue.number = number
    issue.id = 1000 + number
    issue.node_id = f"I_node{number}"
    issue.title = title
    issue.body = body
    issue.html_url = f"https://github.com/octo-org/octo-repo/issues/{number}"
    return issue


def github_error(status: int, message: str) -> GithubException:
    return GithubException(status, {"message": message}, None)


def entity(
    entity_id: int,
    entity_type: EntityType = EntityType.USER_STORY,
    name: str = "Story",
    description: str = "",
    parent: tuple[EntityType, int] | None = None,
    effort: float | None = None,
) -> SourceEntity:
    return SourceEntity(
        id=entity_id,
        type=entity_type,
        name=name,
        description_html=description,
        parent_ref=parent,
        effort=effort,
    )


@pytest.fixture
def tp_session() -> Mock:
    return Mock()


@pytest.fixture
def tp_client(tp_session: Mock) -> TargetProcessClient:
    return TargetProcessClient(TP_BASE_URL, "user", "secret", session=tp_session)


@pytest.fixture
def github_repo() -> Mock:
    repo = Mock()
    repo.full_name = "octo-org/octo-repo"
    repo.default_branch = "main"
    return repo


@pytest.fixture
def github_client() -> Mock:
    client = Mock()
    client.search_issues.return_value = []
    return client
