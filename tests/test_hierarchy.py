"""Tests for the hierarchy tree."""

import pytest
from conftest import entity

from tp_to_github_migrator.hierarchy import build_forest
from tp_to_github_migrator.models import EntityType


@pytest.mark.unit
class TestBuildForest:
    def test_parents_are_walked_before_children(self) -> None:
        project = entity(1, EntityType.PROJECT)
        epic = entity(2, EntityType.EPIC, parent=(EntityType.PROJECT, 1))
        feature = entity(3, EntityType.FEATURE, parent=(EntityType.EPIC, 2))
        story_a = entity(4, parent=(EntityType.FEATURE, 3))
        story_b = entity(5, parent=(EntityType.FEATURE, 3))

        forest = build_forest([project, epic, feature, story_a, story_b])

        assert [node.entity.id for node in forest.walk()] == [1, 2, 3, 4, 5]
        assert len(forest.roots) == 1
        assert forest.nodes[(EntityType.USER_STORY, 5)].parent is forest.nodes[(EntityType.FEATURE, 3)]

    def test_missing_parent_makes_a_root(self) -> None:
        orphan = entity(4, parent=(EntityType.FEATURE, 99))
        loose = entity(5)

        forest = build_forest([orphan, loose])

        assert [root.entity.id for root in forest.roots] == [4, 5]
        assert all(root.parent is None for root in forest.roots)

    def test_same_id_on_different_levels_are_distinct(self) -> None:
        forest = build_forest([entity(1, EntityType.PROJECT), entity(1, EntityType.EPIC, parent=(EntityType.PROJECT, 1))])

        assert len(forest) == 2
        assert forest.roots[0].children[0].entity.type is EntityType.EPIC

    def test_duplicates_keep_first(self) -> None:
        forest = build_forest([entity(4, name="first"), entity(4, name="second")])

        assert len(forest) == 1
        assert forest.roots[0].entity.name == "first"

    def test_siblings_keep_source_order(self) -> None:
        epic = entity(1, EntityType.EPIC)
        features = [entity(i, EntityType.FEATURE, parent=(EntityType.EPIC, 1)) for i in (30, 10, 20)]

        forest = build_forest([*features, epic])

        assert [node.entity.id for node in forest.walk()] == [1, 30, 10, 20]
