"""Tests for quadtree builder and statistics."""

import pytest
from bbox_quadtree.builder import TreeStats, build_quadtree, collect_stats
from bbox_quadtree.errors import InvalidCapacityError
from bbox_quadtree.geometry import BoundingBox, BoxItem
from bbox_quadtree.quadtree import QuadTree


REGION = BoundingBox(-10, 10, -10, 10)


def item(name, min_x, max_x, min_y, max_y):
    return BoxItem(name, BoundingBox(min_x, max_x, min_y, max_y))


ITEMS = [
    item("nw", -9, -8, 8, 9),
    item("ne", 0, 1, 0, 1),
    item("sw", -9, -8, -9, -8),
    item("se", 8, 9, -9, -8),
    item("straddle", -1, 1, 4, 5),
]


class TestTreeStats:
    """Tests for TreeStats."""

    def test_defaults(self):
        stats = TreeStats()
        assert stats.node_count == 0
        assert stats.replication_factor == 0.0

    def test_replication_factor(self):
        stats = TreeStats(stored_items=9, distinct_items=5)
        assert stats.replication_factor == pytest.approx(1.8)


class TestBuildQuadtree:
    """Tests for build_quadtree."""

    def test_build(self):
        tree, stats = build_quadtree(ITEMS, REGION, capacity=4)
        assert isinstance(tree, QuadTree)
        assert set(tree.to_list()) == set(ITEMS)

        assert stats.node_count == 5
        assert stats.leaf_count == 4
        assert stats.internal_count == 1
        assert stats.max_depth_reached == 1
        assert stats.stored_items == 9
        assert stats.distinct_items == 5
        assert stats.overflow_leaves == 0

    def test_empty(self):
        tree, stats = build_quadtree([], REGION, capacity=4)
        assert len(tree) == 0
        assert stats.node_count == 1
        assert stats.leaf_count == 1
        assert stats.internal_count == 0
        assert stats.replication_factor == 0.0

    def test_max_depth_passed_through(self):
        tree, _ = build_quadtree(ITEMS, REGION, capacity=1, max_depth=2)
        assert tree.max_depth == 2
        assert tree.depth <= 2

    def test_key_passed_through(self):
        dup = item("nw", 2, 3, 2, 3)
        tree, stats = build_quadtree(ITEMS + [dup], REGION, capacity=4,
                                     key=lambda i: i.name)
        assert stats.distinct_items == 5

    def test_invalid_capacity(self):
        with pytest.raises(InvalidCapacityError):
            build_quadtree(ITEMS, REGION, capacity=0)


class TestCollectStats:
    """Tests for collect_stats."""

    def test_overflow_leaves(self):
        region = BoundingBox(0, 16, 0, 16)
        items = [item(f"p{i}", 0.5, 1.5, 0.5, 1.5) for i in range(3)]
        tree = QuadTree.create(region, 1, max_depth=3).insert_all(items)
        stats = collect_stats(tree)
        assert stats.overflow_leaves == 1
        assert stats.max_depth_reached == 3
        assert stats.distinct_items == 3

    def test_matches_tree_properties(self):
        tree = QuadTree.create(REGION, 2).insert_all(ITEMS)
        stats = collect_stats(tree)
        assert stats.node_count == tree.node_count
        assert stats.leaf_count == tree.leaf_count
        assert stats.max_depth_reached == tree.depth
        assert stats.stored_items == len(tree)
