"""Migration orchestrator that coordinates TargetProcess and GitHub.

Migration Flow
--------------
Phase 1: Fetch
    For each level (Project, Epic, Feature, UserStory) list the team's
    entities that are not Done, then fetch every entity on its own to learn
    its parent reference (and effort, when estimates are migrated).

Phase 2: Hierarchy
    Build a typed tree from the parent references. Entities whose parent was
    not fetched become roots.

Phase 3: Issues, parents first
    For each node of the tree:
        a. Fetch the user story's tasks (rendered as a checklist)
        b. Migrate attachments (their URLs go into the body)
        c. Normalize title and body, provenance marker last
        d. Find the issue by marker, or create and mute it
        e. Link it as sub-issue of its parent's issue
        f. Add it to the project board and set its estimate

Re-running is safe: issues are found again by marker, attachments by path,
sub-issue links that already exist are skipped and board items are looked up
before being added. Nothing is stored locally between runs.

Error Handling
--------------
Any failure stops the run: a half-built hierarchy cannot be repaired
mid-run. The only recovered failure is an unmapped assignee, which is
dropped with a warning.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import requests
from github import GithubException

from .exceptions import MigrationError
from .hierarchy import build_forest
from .models import ISSUE_LEVELS, EntityType
from .target_process import team_scope

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .assignees import AssigneeResolver
    from .attachments import AttachmentMigrator
    from .hierarchy import HierarchyNode
    from .issue_builder import EntityNormalizer
    from .issue_repository import DestinationIssueRepository
    from .models import DestinationIssue, EntityKey, SourceEntity
    from .project_board import DestinationProjectBoard
    from .target_process import TargetProcessClient

logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    entities_fetched: int = 0
    issues_created: int = 0
    issues_found: int = 0
    sub_issues_linked: int = 0
    sub_issues_already_linked: int = 0
    attachments_referenced: int = 0
    board_items: int = 0
    estimates_set: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class IssuePreview:
    """What a dry run would send to GitHub for one entity."""

    type: str
    id: int
    parent: str | None
    title: str
    body: str


@dataclass
class MigrationResult:
    """Result of a migration run."""

    success: bool
    stats: MigrationStats
    issue_map: dict[EntityKey, int] = field(default_factory=dict)  # (type, id) -> issue number
    previews: list[IssuePreview] = field(default_factory=list)

    def report(self) -> dict[str, Any]:
        stats = asdict(self.stats)
        errors = stats.pop("errors")
        return {"success": self.success, "errors": errors, "statistics": stats}


@dataclass
class _BoardTarget:
    board_id: str
    estimate_field_id: str | None


class MigrationOrchestrator:
    """Drives a TargetProcess to GitHub import.

    Usage:
        orchestrator = MigrationOrchestrator(tp_client, normalizer, attachments, issues, resolver)
        result = orchestrator.run()
    """

    def __init__(
        self,
        source: TargetProcessClient,
        normalizer: EntityNormalizer,
        attachments: AttachmentMigrator,
        issues: DestinationIssueRepository,
        resolver: AssigneeResolver | None = None,
        *,
        team_id: int | None = None,
        board: DestinationProjectBoard | None = None,
        board_name: str | None = None,
        estimate_field: str | None = None,
    ) -> None:
        if board is not None and not board_name:
            msg = "A project board client needs a board name"
            raise MigrationError(msg)
        self._source = source
        self._normalizer = normalizer
        self._attachments = attachments
        self._issues = issues
        self._resolver = resolver
        self._team_id = team_id
        self._board = board
        self._board_name = board_name
        self._estimate_field = estimate_field

    def collect_entities(self, types: Sequence[EntityType] = ISSUE_LEVELS) -> list[SourceEntity]:
        """List the team's open entities of each level, with parent references resolved."""
        entities: list[SourceEntity] = []
        for entity_type in ISSUE_LEVELS:
            if entity_type not in types:
                continue
            scope = team_scope("Team.Id", self._team_id)
            listed = list(self._source.entities(entity_type, scope))
            logger.info(f"Fetched {len(listed)} {entity_type.collection} from TargetProcess")
            for entity in listed:
                if entity_type.parent_field or self._estimate_field:
                    entity = entity.with_details(self._source.entity(entity_type, entity.id))  # noqa: PLW2901
                entities.append(entity)
        return entities

    def run(self, *, dry_run: bool = False, types: Sequence[EntityType] = ISSUE_LEVELS) -> MigrationResult:
        """Execute the migration.

        Raises:
            MigrationError: on the first failure; nothing after it is attempted.
        """
        stats = MigrationStats()
        result = MigrationResult(success=False, stats=stats)
        issues_by_key: dict[EntityKey, DestinationIssue] = {}

        try:
            board_target = None if dry_run else self._resolve_board_target()
            forest = build_forest(self.collect_entities(types))
            stats.entities_fetched = len(forest)

            for node in forest.walk():
                self._migrate_node(node, result, issues_by_key, board_target, dry_run=dry_run)

        except (requests.RequestException, GithubException) as e:
            stats.errors.append(str(e))
            msg = f"Migration failed: {e}"
            raise MigrationError(msg) from e
        except MigrationError as e:
            stats.errors.append(str(e))
            raise

        stats.issues_created = self._issues.created_count
        stats.issues_found = self._issues.found_count
        result.success = True
        logger.info("Migration completed successfully" if not dry_run else "Dry run completed")
        return result

    def _resolve_board_target(self) -> _BoardTarget | None:
        if self._board is None or not self._board_name:
            return None
        board_id = self._board.resolve_board(self._board_name)
        field_id = self._board.field_id_by_name(board_id, self._estimate_field) if self._estimate_field else None
        return _BoardTarget(board_id=board_id, estimate_field_id=field_id)

    def _migrate_node(
        self,
        node: HierarchyNode,
        result: MigrationResult,
        issues_by_key: dict[EntityKey, DestinationIssue],
        board_target: _BoardTarget | None,
        *,
        dry_run: bool,
    ) -> None:
        entity = node.entity
        stats = result.stats
        tasks: list[SourceEntity] = []
        if entity.type is EntityType.USER_STORY:
            tasks = list(self._source.tasks_for_user_story(entity.id, self._team_id))

        records = self._attachments.migrate(entity.type, entity.id, dry_run=dry_run)
        stats.attachments_referenced += len(records)
        normalized = self._normalizer.normalize(entity, tasks, records)

        if dry_run:
            parent = node.parent.entity if node.parent else None
            result.previews.append(
                IssuePreview(
                    type=entity.type.value,
                    id=entity.id,
                    parent=f"{parent.type.value}#{parent.id}" if parent else None,
                    title=normalized.title,
                    body=normalized.body,
                )
            )
            return

        assignees: list[str] = []
        if self._resolver is not None:
            assignees = self._resolver.resolve(self._source.assigned_user_emails(entity.type, entity.id))

        issue = self._issues.upsert(entity, normalized.title, normalized.body, assignees=assignees)
        issues_by_key[entity.key] = issue
        result.issue_map[entity.key] = issue.number

        if node.parent is not None:
            parent_issue = issues_by_key[node.parent.entity.key]
            if self._issues.link_child(parent_issue, issue):
                stats.sub_issues_linked += 1
            else:
                stats.sub_issues_already_linked += 1

        if board_target is not None and self._board is not None:
            item_id = self._board.add_issue(board_target.board_id, issue.node_id)
            stats.board_items += 1
            if board_target.estimate_field_id and entity.effort is not None:
                self._board.set_numeric_field(
                    board_target.board_id, item_id, board_target.estimate_field_id, entity.effort
                )
                stats.estimates_set += 1
