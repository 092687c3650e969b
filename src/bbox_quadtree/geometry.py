"""
Geometry primitives for the bounding-box quadtree.

This module defines the axis-aligned box representation and the small set
of predicates the tree consumes: intersection, minimum separation and
scaling about a corner (used to derive quadrant sub-regions).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, List, Optional, Protocol, Tuple
import math


class Corner(Enum):
    """
    Box corners, also used as the fixed quadrant / child order.

    Order: NW, NE, SW, SE (indices 0-3).
    """
    NW = 0
    NE = 1
    SW = 2
    SE = 3


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned rectangle with closed float extents.

    Represents [min_x, max_x] x [min_y, max_y]. Boxes that only touch
    along an edge or at a corner still intersect.
    """
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Invalid bounding box: min_x={self.min_x}, max_x={self.max_x}, "
                f"min_y={self.min_y}, max_y={self.max_y}"
            )

    @property
    def width(self) -> float:
        """Extent along the x-axis."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Extent along the y-axis."""
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        """Midpoint of the box as (x, y)."""
        return (self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2

    def is_point(self) -> bool:
        """Check if the box is degenerate in both axes."""
        return self.min_x == self.max_x and self.min_y == self.max_y

    def contains_point(self, x: float, y: float) -> bool:
        """Check if point (x, y) lies within this box."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def intersects(self, other: BoundingBox) -> bool:
        """Check if two boxes overlap (closed intervals on both axes)."""
        return (
            self.min_x <= other.max_x
            and other.min_x <= self.max_x
            and self.min_y <= other.max_y
            and other.min_y <= self.max_y
        )

    def distance_to(self, other: BoundingBox) -> float:
        """
        Minimum Euclidean distance between the two boxes.

        Returns 0.0 when the boxes intersect.
        """
        dx = max(0.0, other.min_x - self.max_x, self.min_x - other.max_x)
        dy = max(0.0, other.min_y - self.max_y, self.min_y - other.max_y)
        return math.hypot(dx, dy)

    def separated_by_at_least(self, distance: float, other: BoundingBox) -> bool:
        """
        Check if the boxes are disjoint with a gap of at least `distance`.

        Intersecting boxes are never separated, so a distance of zero
        reduces to "does not intersect".

        Args:
            distance: Minimum gap (non-negative)
            other: Box to compare against

        Returns:
            True if no point of `other` lies within `distance` of this box
        """
        if self.intersects(other):
            return False
        return self.distance_to(other) >= distance

    def scale_about_corner(self, corner: Corner, factor: float) -> BoundingBox:
        """
        Scale the box by `factor` keeping the given corner fixed.

        Args:
            corner: Corner that stays in place
            factor: Scale applied to width and height

        Returns:
            The scaled BoundingBox
        """
        w = self.width * factor
        h = self.height * factor

        if corner in (Corner.NW, Corner.SW):
            min_x, max_x = self.min_x, self.min_x + w
        else:
            min_x, max_x = self.max_x - w, self.max_x

        # North is +y
        if corner in (Corner.NW, Corner.NE):
            min_y, max_y = self.max_y - h, self.max_y
        else:
            min_y, max_y = self.min_y, self.min_y + h

        return BoundingBox(min_x, max_x, min_y, max_y)

    def quadrants(self) -> List[BoundingBox]:
        """
        Subdivide the box into its 4 half-scale quadrants.

        Child order (fixed for consistency): NW, NE, SW, SE. Each quadrant
        is `scale_about_corner(corner, 0.5)`, but all four share one computed
        midpoint so that float rounding can never open a gap between them.

        Returns:
            List of 4 BoundingBox objects
        """
        xm, ym = self.center
        return [
            BoundingBox(self.min_x, xm, ym, self.max_y),  # NW
            BoundingBox(xm, self.max_x, ym, self.max_y),  # NE
            BoundingBox(self.min_x, xm, self.min_y, ym),  # SW
            BoundingBox(xm, self.max_x, self.min_y, ym),  # SE
        ]


def point(x: float, y: float) -> BoundingBox:
    """Build a degenerate box covering the single point (x, y)."""
    return BoundingBox(x, x, y, y)


def box_of(value: Any) -> BoundingBox:
    """
    Return the bounding box of a query value.

    Accepts either a BoundingBox or anything carrying a `box` attribute.
    """
    if isinstance(value, BoundingBox):
        return value
    return value.box


class Bounded(Protocol):
    """Anything exposing a bounding box can be stored in the tree."""

    @property
    def box(self) -> BoundingBox:
        ...


@dataclass(frozen=True)
class BoxItem:
    """
    A named bounded value.

    Equality and hashing cover all three fields, so two items with the
    same name but different boxes are distinct.
    """
    name: str
    box: BoundingBox
    payload: Optional[Hashable] = None

    def moved(self, dx: float, dy: float) -> BoxItem:
        """Return a copy translated by (dx, dy)."""
        b = self.box
        return BoxItem(
            self.name,
            BoundingBox(b.min_x + dx, b.max_x + dx, b.min_y + dy, b.max_y + dy),
            self.payload,
        )
