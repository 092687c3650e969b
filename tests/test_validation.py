"""Tests for structural validation."""

import pytest
from bbox_quadtree.errors import TreeInvariantError
from bbox_quadtree.geometry import BoundingBox, BoxItem
from bbox_quadtree.quadtree import InternalNode, LeafNode, QuadTree, TreeConfig
from bbox_quadtree.validation import (
    OK,
    ValidationResult,
    Violation,
    can_separate,
    validate_tree,
)


REGION = BoundingBox(0, 8, 0, 8)


def item(name, min_x, max_x, min_y, max_y):
    return BoxItem(name, BoundingBox(min_x, max_x, min_y, max_y))


A = item("a", 1, 2, 1, 2)
B = item("b", 5, 6, 5, 6)
C = item("c", 1, 2, 5, 6)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_ok(self):
        assert OK.ok
        assert bool(OK)
        assert OK.violation is None

    def test_failure_is_falsy(self):
        result = ValidationResult(Violation.ITEMS_IN_WRONG_LEAVES, REGION, "bad")
        assert not result.ok
        assert not result

    def test_violation_names(self):
        assert Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE.value == "LeafItemsExceedsMaxSize"
        assert Violation.ITEMS_IN_WRONG_LEAVES.value == "ItemsInWrongLeaves"


class TestCanSeparate:
    """Tests for can_separate."""

    def test_small_items_separate(self):
        assert can_separate(REGION, [A, B])

    def test_items_covering_region(self):
        cover = item("cover", 0, 8, 0, 8)
        assert not can_separate(REGION, [cover, cover])

    def test_items_on_centre(self):
        centre = item("centre", 4, 4, 4, 4)
        assert not can_separate(REGION, [centre])

    def test_empty(self):
        assert not can_separate(REGION, [])


class TestValidateTree:
    """Tests for validate_tree."""

    def test_valid_leaves(self):
        leaves = [(REGION, (A, B), 0)]
        assert validate_tree(leaves, capacity=2, max_depth=4) is OK

    def test_too_many_items(self):
        leaves = [(REGION, (A, B, C), 0)]
        result = validate_tree(leaves, capacity=2, max_depth=4)
        assert result.violation == Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE
        assert result.region == REGION

    def test_overflow_at_depth_cap_allowed(self):
        leaves = [(REGION, (A, B, C), 4)]
        assert validate_tree(leaves, capacity=2, max_depth=4).ok

    def test_unseparable_overflow_allowed(self):
        cover = item("cover", 0, 8, 0, 8)
        leaves = [(REGION, (cover, cover, cover), 0)]
        assert validate_tree(leaves, capacity=2, max_depth=4).ok

    def test_item_outside_leaf(self):
        leaf_region = BoundingBox(0, 4, 0, 4)
        leaves = [(leaf_region, (A, B), 1)]
        result = validate_tree(leaves, capacity=4, max_depth=4)
        assert result.violation == Violation.ITEMS_IN_WRONG_LEAVES
        assert result.region == leaf_region

    def test_size_checked_before_containment(self):
        leaf_region = BoundingBox(0, 4, 0, 4)
        leaves = [(leaf_region, (A, B, C), 1)]
        result = validate_tree(leaves, capacity=2, max_depth=4)
        assert result.violation == Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE

    def test_first_violation_reported(self):
        first = BoundingBox(0, 4, 4, 8)
        second = BoundingBox(4, 8, 4, 8)
        leaves = [
            (BoundingBox(0, 4, 0, 4), (A,), 1),
            (first, (B,), 1),
            (second, (A, B, C), 1),
        ]
        result = validate_tree(leaves, capacity=2, max_depth=4)
        assert result.region == first


class TestQuadTreeValidation:
    """Tests for QuadTree.validate and friends."""

    def test_built_tree_is_valid(self):
        tree = QuadTree.create(REGION, 1).insert_all([A, B, C])
        assert tree.validate().ok
        tree.assert_valid()

    def test_hand_built_oversized_leaf(self):
        tree = QuadTree(LeafNode(REGION, (A, B, C)), TreeConfig(capacity=2))
        result = tree.validate()
        assert result.violation == Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE
        assert not tree.is_valid()

    def test_hand_built_misplaced_item(self):
        node = InternalNode.empty(REGION)
        nw, ne, sw, se = node.children
        bad = InternalNode(REGION, (nw, ne, LeafNode(sw.region, (B,)), se))
        tree = QuadTree(bad, TreeConfig(capacity=2))
        result = tree.validate()
        assert result.violation == Violation.ITEMS_IN_WRONG_LEAVES
        assert result.region == sw.region

    def test_assert_valid_raises(self):
        tree = QuadTree(LeafNode(REGION, (A, B, C)), TreeConfig(capacity=2))
        with pytest.raises(TreeInvariantError) as exc_info:
            tree.assert_valid()
        assert exc_info.value.result.violation == Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE
