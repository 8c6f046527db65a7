"""Data models exchanged between the TargetProcess client, GitHub and the orchestrator.

All of these are snapshots built fresh on every run. None of them is persisted:
the only join key that survives between runs is the provenance marker embedded
in each GitHub issue body.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EntityType(str, Enum):
    """TargetProcess entity levels, top of the hierarchy first."""

    PROJECT = "Project"
    EPIC = "Epic"
    FEATURE = "Feature"
    USER_STORY = "UserStory"
    TASK = "Task"

    @property
    def collection(self) -> str:
        """Name of the REST collection, e.g. ``UserStories``."""
        return _COLLECTIONS[self]

    @property
    def parent_type(self) -> EntityType | None:
        return _PARENTS.get(self)

    @property
    def parent_field(self) -> str | None:
        """Field of the TargetProcess payload holding the parent reference."""
        parent = self.parent_type
        return parent.value if parent else None


_COLLECTIONS: dict[EntityType, str] = {
    EntityType.PROJECT: "Projects",
    EntityType.EPIC: "Epics",
    EntityType.FEATURE: "Features",
    EntityType.USER_STORY: "UserStories",
    EntityType.TASK: "Tasks",
}

_PARENTS: dict[EntityType, EntityType] = {
    EntityType.EPIC: EntityType.PROJECT,
    EntityType.FEATURE: EntityType.EPIC,
    EntityType.USER_STORY: EntityType.FEATURE,
    EntityType.TASK: EntityType.USER_STORY,
}

# Levels that become GitHub issues; tasks are rendered as checklists instead.
ISSUE_LEVELS: tuple[EntityType, ...] = (
    EntityType.PROJECT,
    EntityType.EPIC,
    EntityType.FEATURE,
    EntityType.USER_STORY,
)

EntityKey = tuple[EntityType, int]


def provenance_marker(entity_type: EntityType | str, entity_id: int) -> str:
    """Return the invisible tag identifying the source entity of a GitHub issue."""
    type_name = entity_type.value if isinstance(entity_type, EntityType) else entity_type
    return f"<!--tp:{type_name}:{entity_id}-->"


@dataclass(frozen=True)
class SourceEntity:
    """A work item fetched from TargetProcess."""

    id: int
    type: EntityType
    name: str
    description_html: str = ""
    parent_ref: EntityKey | None = None
    effort: float | None = None  # Only present on single-entity fetches

    @property
    def key(self) -> EntityKey:
        return (self.type, self.id)

    @property
    def marker(self) -> str:
        return provenance_marker(self.type, self.id)

    @classmethod
    def from_api(cls, entity_type: EntityType, payload: dict[str, Any]) -> SourceEntity:
        """Build an entity from a TargetProcess JSON object."""
        parent_ref: EntityKey | None = None
        parent_field = entity_type.parent_field
        if parent_field and entity_type.parent_type is not None:
            parent = payload.get(parent_field)
            if isinstance(parent, dict) and parent.get("Id") is not None:
                parent_ref = (entity_type.parent_type, int(parent["Id"]))

        effort = payload.get("Effort")
        return cls(
            id=int(payload["Id"]),
            type=entity_type,
            name=str(payload.get("Name") or ""),
            description_html=payload.get("Description") or "",
            parent_ref=parent_ref,
            effort=float(effort) if effort is not None else None,
        )

    def with_details(self, details: SourceEntity) -> SourceEntity:
        """Return a copy carrying the parent reference and effort of a detailed fetch."""
        return SourceEntity(
            id=self.id,
            type=self.type,
            name=self.name,
            description_html=self.description_html,
            parent_ref=details.parent_ref,
            effort=details.effort,
        )


@dataclass(frozen=True)
class SourceAttachment:
    """Metadata of a file attached to a TargetProcess entity.

    The bytes are fetched lazily through the client, and only when an upload
    is actually needed.
    """

    id: int
    owning_type: EntityType
    owning_id: int
    original_filename: str


@dataclass(frozen=True)
class MigratedAttachmentRecord:
    """Where a TargetProcess attachment lives (or will live) in the GitHub repository."""

    source_attachment_id: int
    original_name: str
    destination_path: str
    destination_url: str


@dataclass(frozen=True)
class NormalizedIssue:
    """Title and body ready to be sent to GitHub."""

    title: str
    body: str


@dataclass(frozen=True)
class DestinationIssue:
    """A GitHub issue created for, or found for, a source entity."""

    number: int
    id: int  # REST id, required by the sub-issues API
    node_id: str  # GraphQL id, required by Projects v2
    title: str
    body: str
    html_url: str = ""
