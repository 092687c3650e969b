"""
bbox-quadtree: Persistent region quadtree over bounding-box items.

This package provides a spatial index for anything carrying an axis-aligned
bounding box. Items crossing quadrant boundaries are replicated into every
leaf they touch, and the tree answers overlap and distance-bounded neighbor
queries without a linear scan.
"""

__version__ = "0.1.0"

from .geometry import BoundingBox, BoxItem, Bounded, Corner, point
from .errors import (
    QuadTreeError,
    InvalidCapacityError,
    InvalidDistanceError,
    TreeInvariantError,
)
from .quadtree import QuadTreeNode, LeafNode, InternalNode, QuadTree, TreeConfig
from .validation import ValidationResult, Violation
from .builder import build_quadtree, collect_stats, TreeStats
from .oracle import BoxOracle, LinearScanOracle
from .duckdb_oracle import DuckDBOracle

__all__ = [
    "BoundingBox",
    "BoxItem",
    "Bounded",
    "Corner",
    "point",
    "QuadTreeError",
    "InvalidCapacityError",
    "InvalidDistanceError",
    "TreeInvariantError",
    "QuadTreeNode",
    "LeafNode",
    "InternalNode",
    "QuadTree",
    "TreeConfig",
    "ValidationResult",
    "Violation",
    "build_quadtree",
    "collect_stats",
    "TreeStats",
    "BoxOracle",
    "LinearScanOracle",
    "DuckDBOracle",
]
