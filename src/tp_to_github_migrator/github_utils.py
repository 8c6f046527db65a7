from __future__ import annotations

import logging
from typing import Any

from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from .exceptions import DestinationApiError, MigrationError

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


def get_client(token: str) -> Github:
    """Get a GitHub client authenticated with a bearer token."""
    return Github(auth=Auth.Token(token))


def get_repo(client: Github, repo_path: str) -> Repository:
    try:
        return client.get_repo(repo_path)
    except UnknownObjectException as e:
        msg = f"GitHub repository {repo_path} not found or not accessible"
        raise MigrationError(msg) from e
    except GithubException as e:
        msg = f"Error loading repository {repo_path}: {e}"
        raise DestinationApiError(msg) from e


def error_message(exc: GithubException) -> str:
    """Extract the human readable message GitHub put in an error response."""
    data: object = exc.data
    if isinstance(data, dict):
        message = data.get("message")  # pyright: ignore[reportUnknownVariableType]
        if message:
            return str(message)  # pyright: ignore[reportUnknownArgumentType]
    return str(data or "")


def graphql(client: Github, query: str, variables: dict[str, Any]) -> dict[str, Any]:
    """Run a GraphQL request through PyGithub's requester and return its ``data`` member.

    The requester gives us the same authentication and rate limiting as the
    REST calls.
    """
    try:
        _, response = client.requester.graphql_query(query, variables)
    except GithubException as e:
        msg = f"GraphQL query failed (status={e.status}): {e.data}"
        raise DestinationApiError(msg) from e

    if response.get("errors"):
        messages = ", ".join(str(err.get("message")) for err in response["errors"])
        msg = f"GraphQL errors: {messages}"
        raise DestinationApiError(msg)

    data = response.get("data")
    if data is None:
        msg = f"GraphQL response is missing 'data': {response!r}"
        raise DestinationApiError(msg)
    return data
