"""
Quadtree construction helpers and shape statistics.

This module wraps the create-then-insert sequence into a single call and
reports how the resulting tree subdivided its region: how many nodes and
leaves it created, how deep it went and how much overlap replication the
items caused.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from .geometry import BoundingBox
from .quadtree import DEFAULT_MAX_DEPTH, KeyFunc, QuadTree


@dataclass
class TreeStats:
    """Statistics describing a tree's shape."""

    node_count: int = 0
    leaf_count: int = 0
    internal_count: int = 0
    max_depth_reached: int = 0
    stored_items: int = 0
    distinct_items: int = 0
    overflow_leaves: int = 0

    @property
    def replication_factor(self) -> float:
        """Stored copies per distinct item (0.0 for an empty tree)."""
        if self.distinct_items == 0:
            return 0.0
        return self.stored_items / self.distinct_items


def collect_stats(tree: QuadTree) -> TreeStats:
    """
    Walk a tree and collect its statistics.

    Args:
        tree: Tree to inspect

    Returns:
        TreeStats for the tree
    """
    stats = TreeStats()

    for _, items, depth in tree.leaves():
        stats.leaf_count += 1
        stats.stored_items += len(items)
        stats.max_depth_reached = max(stats.max_depth_reached, depth)
        if len(items) > tree.capacity:
            stats.overflow_leaves += 1

    stats.node_count = tree.node_count
    stats.internal_count = stats.node_count - stats.leaf_count
    stats.distinct_items = len(tree.to_list())
    return stats


def build_quadtree(
    items: Iterable[Any],
    region: BoundingBox,
    capacity: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    key: Optional[KeyFunc] = None,
) -> Tuple[QuadTree, TreeStats]:
    """
    Convenience function to build a quadtree.

    Args:
        items: Bounded items to insert, in order
        region: Region covered by the tree
        capacity: Maximum items per leaf
        max_depth: Depth at which leaves overflow instead of splitting
        key: Optional identity function for dedup and removal

    Returns:
        Tuple of (QuadTree, TreeStats)
    """
    tree = QuadTree.create(region, capacity, max_depth=max_depth, key=key)
    tree = tree.insert_all(items)
    return tree, collect_stats(tree)
