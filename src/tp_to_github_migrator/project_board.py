"""GitHub Projects (v2) integration: board lookup, items and numeric fields."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import github_utils as ghu
from .exceptions import AmbiguousMatchError, BoardNotFoundError, DestinationApiError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from github import Github

logger: logging.Logger = logging.getLogger(__name__)

_PROJECTS_QUERY = """
query($org: String!, $after: String) {
  organization(login: $org) {
    projectsV2(first: 100, after: $after) {
      pageInfo { hasNextPage endCursor }
      nodes { id title }
    }
  }
}
"""

_ITEMS_QUERY = """
query($project: ID!, $after: String) {
  node(id: $project) {
    ... on ProjectV2 {
      items(first: 100, after: $after) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          content { ... on Issue { id } }
        }
      }
    }
  }
}
"""

_FIELDS_QUERY = """
query($project: ID!, $after: String) {
  node(id: $project) {
    ... on ProjectV2 {
      fields(first: 50, after: $after) {
        pageInfo { hasNextPage endCursor }
        nodes {
          ... on ProjectV2FieldCommon { id name dataType }
        }
      }
    }
  }
}
"""

_ADD_ITEM_MUTATION = """
mutation($project: ID!, $content: ID!) {
  addProjectV2ItemById(input: {projectId: $project, contentId: $content}) {
    item { id }
  }
}
"""

_SET_NUMBER_MUTATION = """
mutation($project: ID!, $item: ID!, $field: ID!, $value: Float!) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $project, itemId: $item, fieldId: $field, value: { number: $value }
  }) {
    projectV2Item { id }
  }
}
"""

_ISSUE_NODE_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) { id }
  }
}
"""


class DestinationProjectBoard:
    """A GitHub organization's Projects v2 boards, accessed through GraphQL."""

    def __init__(self, github_client: Github, org: str) -> None:
        self._github_client: Github = github_client
        self.org: str = org

    def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        return ghu.graphql(self._github_client, query, variables)

    def _pages(self, query: str, variables: dict[str, Any], path: tuple[str, ...]) -> Iterator[dict[str, Any]]:
        """Yield the nodes of a cursor-paginated connection found at ``path`` in the response."""
        after: str | None = None
        while True:
            data = self._query(query, {**variables, "after": after})
            connection: Any = data
            for key in path:
                connection = connection.get(key) if isinstance(connection, dict) else None
                if connection is None:
                    msg = f"GraphQL response has no '{'.'.join(path)}': {data!r}"
                    raise DestinationApiError(msg)
            yield from connection.get("nodes") or []

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return
            after = page_info.get("endCursor")

    def resolve_board(self, name: str) -> str:
        """Return the node id of the organization board titled exactly ``name``.

        Raises:
            BoardNotFoundError: if no board has this title.
            AmbiguousMatchError: if several boards have this title.
        """
        matches = [
            node["id"]
            for node in self._pages(_PROJECTS_QUERY, {"org": self.org}, ("organization", "projectsV2"))
            if node and node.get("title") == name
        ]
        if len(matches) > 1:
            msg = f"Ambiguous project name: {name!r} (found {len(matches)}) in org {self.org}"
            raise AmbiguousMatchError(msg)
        if not matches:
            msg = f"Project not found with name: {name!r} in org {self.org}"
            raise BoardNotFoundError(msg)
        logger.debug(f"Resolved project board {name!r} to {matches[0]}")
        return matches[0]

    def find_item(self, board_id: str, issue_node_id: str) -> str | None:
        for item in self._pages(_ITEMS_QUERY, {"project": board_id}, ("node", "items")):
            content = (item or {}).get("content") or {}
            if content.get("id") == issue_node_id:
                return item["id"]
        return None

    def add_issue(self, board_id: str, issue_node_id: str) -> str:
        """Return the board item of an issue, adding the issue to the board if needed."""
        existing = self.find_item(board_id, issue_node_id)
        if existing:
            return existing

        data = self._query(_ADD_ITEM_MUTATION, {"project": board_id, "content": issue_node_id})
        item = (data.get("addProjectV2ItemById") or {}).get("item") or {}
        if not item.get("id"):
            msg = f"addProjectV2ItemById failed: {data!r}"
            raise DestinationApiError(msg)
        logger.debug(f"Added {issue_node_id} to board {board_id} as item {item['id']}")
        return item["id"]

    def list_fields(self, board_id: str) -> list[dict[str, Any]]:
        return [field for field in self._pages(_FIELDS_QUERY, {"project": board_id}, ("node", "fields")) if field]

    def field_id_by_name(self, board_id: str, name: str) -> str:
        for field in self.list_fields(board_id):
            if field.get("name") == name:
                return field["id"]
        msg = f"Field {name!r} not found on project board {board_id}"
        raise BoardNotFoundError(msg)

    def set_numeric_field(self, board_id: str, item_id: str, field_id: str, value: float) -> None:
        """Overwrite a number field of a board item."""
        variables = {"project": board_id, "item": item_id, "field": field_id, "value": float(value)}
        data = self._query(_SET_NUMBER_MUTATION, variables)
        result = (data.get("updateProjectV2ItemFieldValue") or {}).get("projectV2Item") or {}
        if not result.get("id"):
            msg = f"updateProjectV2ItemFieldValue failed: {data!r}"
            raise DestinationApiError(msg)

    def issue_node_id(self, owner: str, repo: str, number: int) -> str:
        data = self._query(_ISSUE_NODE_QUERY, {"owner": owner, "repo": repo, "number": number})
        repository = data.get("repository")
        if not repository:
            msg = f"Repository not found: {owner}/{repo}"
            raise DestinationApiError(msg)
        issue = repository.get("issue")
        if not issue:
            msg = f"Issue #{number} not found in {owner}/{repo}"
            raise DestinationApiError(msg)
        return issue["id"]
