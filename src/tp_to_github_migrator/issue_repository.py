"""Create-or-find of GitHub issues keyed by the provenance marker, and sub-issue linking."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from github import GithubException

from . import github_utils as ghu
from .exceptions import AmbiguousMatchError, DestinationApiError
from .models import DestinationIssue, provenance_marker

if TYPE_CHECKING:
    from collections.abc import Sequence

    import github.Issue
    import github.Repository
    from github import Github

    from .models import EntityKey, EntityType, SourceEntity

logger: logging.Logger = logging.getLogger(__name__)

# Fragments of the 422 message GitHub sends when a sub-issue link already exists
_ALREADY_LINKED_MESSAGES: Final[tuple[str, ...]] = ("duplicate sub-issues", "only have one parent")


def is_already_linked_error(exc: GithubException) -> bool:
    """Check if a GithubException says the child already has a (this or another) parent."""
    if exc.status != 422:
        return False
    message = ghu.error_message(exc)
    return any(fragment in message for fragment in _ALREADY_LINKED_MESSAGES)


def to_destination_issue(issue: github.Issue.Issue) -> DestinationIssue:
    return DestinationIssue(
        number=issue.number,
        id=issue.id,
        node_id=issue.node_id,
        title=issue.title,
        body=issue.body or "",
        html_url=issue.html_url,
    )


class DestinationIssueRepository:
    """GitHub issues of one repository, looked up by the marker embedded in their body.

    Issues are only ever created, never updated: an issue found by its marker
    is returned as is so that edits made on GitHub survive re-runs.
    """

    _github_client: Github
    _github_repo: github.Repository.Repository
    _created: dict[EntityKey, DestinationIssue]

    def __init__(self, github_client: Github, github_repo: github.Repository.Repository) -> None:
        self._github_client = github_client
        self._github_repo = github_repo
        # Issues created in this run; the search index may not list them yet
        self._created = {}
        self.created_count: int = 0
        self.found_count: int = 0

    @property
    def repo_path(self) -> str:
        return self._github_repo.full_name

    def find_by_marker(self, entity_type: EntityType, entity_id: int) -> DestinationIssue | None:
        """Search the repository for the issue carrying the marker of a source entity.

        Raises:
            AmbiguousMatchError: if more than one issue carries the marker.
        """
        marker = provenance_marker(entity_type, entity_id)
        query = f'repo:{self.repo_path} in:body "{marker}"'
        try:
            matches = [issue for issue in self._github_client.search_issues(query) if marker in (issue.body or "")]
        except GithubException as e:
            msg = f"GitHub issue search failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e

        if len(matches) > 1:
            numbers = ", ".join(f"#{issue.number}" for issue in matches)
            msg = f"Several issues carry the marker {marker}: {numbers}"
            raise AmbiguousMatchError(msg)
        if matches:
            return to_destination_issue(matches[0])
        return None

    def upsert(
        self,
        entity: SourceEntity,
        title: str,
        body: str,
        *,
        assignees: Sequence[str] = (),
    ) -> DestinationIssue:
        """Return the issue of ``entity``, creating (and muting) it if none exists."""
        found = self.find_by_marker(entity.type, entity.id)
        if found is None:
            found = self._created.get(entity.key)
        if found is not None:
            logger.debug(f"{entity.type.value} #{entity.id} already migrated as issue #{found.number}")
            self.found_count += 1
            return found

        try:
            if assignees:
                issue = self._github_repo.create_issue(title=title, body=body, assignees=list(assignees))
            else:
                issue = self._github_repo.create_issue(title=title, body=body)
        except GithubException as e:
            msg = f"GitHub create issue for {entity.type.value} #{entity.id} failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e

        created = to_destination_issue(issue)
        self._created[entity.key] = created
        self.created_count += 1
        self.mute(created.number)
        logger.info(f"Created issue #{created.number} for {entity.type.value} #{entity.id}: {title}")
        return created

    def mute(self, issue_number: int) -> None:
        """Ignore notifications of an issue so the import does not ping watchers."""
        endpoint = f"/repos/{self.repo_path}/issues/{issue_number}/subscription"
        try:
            self._github_client.requester.requestJsonAndCheck(
                "PUT", endpoint, input={"subscribed": False, "ignored": True}
            )
        except GithubException as e:
            msg = f"GitHub mute issue #{issue_number} failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e

    def link_child(self, parent: DestinationIssue, child: DestinationIssue) -> bool:
        """Attach ``child`` as a sub-issue of ``parent``.

        Returns:
            True if the link was created, False if GitHub reports that the child
            already has a parent.
        """
        # The sub-issues API takes the REST id of the child, not its number
        endpoint = f"/repos/{self.repo_path}/issues/{parent.number}/sub_issues"
        try:
            self._github_client.requester.requestJsonAndCheck("POST", endpoint, input={"sub_issue_id": child.id})
        except GithubException as e:
            if is_already_linked_error(e):
                logger.debug(f"Issue #{child.number} already linked under a parent: {ghu.error_message(e)}")
                return False
            msg = f"GitHub add sub-issue #{child.number} to #{parent.number} failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e

        logger.debug(f"Linked issue #{child.number} as sub-issue of #{parent.number}")
        return True
