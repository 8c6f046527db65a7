"""TargetProcess hierarchy as a typed tree built from each entity's parent reference."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .models import EntityKey, SourceEntity

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class HierarchyNode:
    """A source entity and the entities that reference it as parent."""

    entity: SourceEntity
    parent: HierarchyNode | None = None
    children: list[HierarchyNode] = field(default_factory=list)

    def walk(self) -> Iterator[HierarchyNode]:
        """Yield this node, then its descendants depth first (parents before children)."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class HierarchyForest:
    """All fetched entities, grouped under their roots."""

    roots: list[HierarchyNode]
    nodes: dict[EntityKey, HierarchyNode]

    def walk(self) -> Iterator[HierarchyNode]:
        for root in self.roots:
            yield from root.walk()

    def __len__(self) -> int:
        return len(self.nodes)


def build_forest(entities: Iterable[SourceEntity]) -> HierarchyForest:
    """Link entities to their parents.

    Entities whose parent was not fetched (finished, owned by another team, or
    simply without a parent) become roots. Source order is kept among siblings.
    The first occurrence of a duplicated entity wins.
    """
    nodes: dict[EntityKey, HierarchyNode] = {}
    for entity in entities:
        if entity.key in nodes:
            logger.debug(f"Ignoring duplicate {entity.type.value} #{entity.id}")
            continue
        nodes[entity.key] = HierarchyNode(entity)

    roots: list[HierarchyNode] = []
    for node in nodes.values():
        parent_ref = node.entity.parent_ref
        parent = nodes.get(parent_ref) if parent_ref else None
        if parent is None:
            if parent_ref:
                logger.debug(
                    f"Parent {parent_ref[0].value} #{parent_ref[1]} of {node.entity.type.value} "
                    f"#{node.entity.id} not migrated, treating it as a root"
                )
            roots.append(node)
            continue
        node.parent = parent
        parent.children.append(node)

    return HierarchyForest(roots=roots, nodes=nodes)
