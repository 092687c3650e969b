"""
Structural validation for quadtrees.

Validation reports problems as a value instead of raising, so tests and
diagnostics can inspect which invariant broke and where.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from .geometry import BoundingBox


class Violation(Enum):
    """Kinds of structural invariant failure."""
    LEAF_ITEMS_EXCEEDS_MAX_SIZE = "LeafItemsExceedsMaxSize"
    ITEMS_IN_WRONG_LEAVES = "ItemsInWrongLeaves"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating a tree.

    Truthy when the tree is valid. On failure, `violation` names the broken
    invariant and `region` is the region of the first offending leaf.
    """
    violation: Optional[Violation] = None
    region: Optional[BoundingBox] = None
    detail: str = "ok"

    @property
    def ok(self) -> bool:
        return self.violation is None

    def __bool__(self) -> bool:
        return self.ok


OK = ValidationResult()


def can_separate(region: BoundingBox, items: Iterable[Any]) -> bool:
    """
    Check whether splitting `region` would separate any of `items`.

    False when every item meets every quadrant, in which case a split
    would only copy the whole leaf into each child.
    """
    quadrants = region.quadrants()
    return any(
        not item.box.intersects(q) for item in items for q in quadrants
    )


def validate_tree(
    leaves: Iterable[Tuple[BoundingBox, Tuple[Any, ...], int]],
    capacity: int,
    max_depth: int,
) -> ValidationResult:
    """
    Check every leaf against the tree invariants.

    Leaves are checked in traversal order and the first failure is
    returned. Within one leaf the size check runs before containment.
    A leaf may legitimately overflow at `max_depth`, or when no split could
    separate its items; both are exempt from the size check.

    Args:
        leaves: (region, items, depth) for each leaf
        capacity: Maximum items per leaf
        max_depth: Depth at which leaves overflow instead of splitting

    Returns:
        OK, or a ValidationResult describing the first violation
    """
    for region, items, depth in leaves:
        if (
            len(items) > capacity
            and depth < max_depth
            and can_separate(region, items)
        ):
            return ValidationResult(
                Violation.LEAF_ITEMS_EXCEEDS_MAX_SIZE,
                region,
                f"Leaf {region} at depth {depth} holds {len(items)} items "
                f"(capacity {capacity})",
            )

        misplaced = [item for item in items if not item.box.intersects(region)]
        if misplaced:
            return ValidationResult(
                Violation.ITEMS_IN_WRONG_LEAVES,
                region,
                f"Leaf {region} holds {len(misplaced)} items outside its region",
            )

    return OK
