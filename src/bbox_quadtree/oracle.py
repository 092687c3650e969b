"""
Oracle interface for bounding-box queries.

An oracle answers the same overlap and neighbor questions as the quadtree
by brute force. It is the ground truth the tree is cross-checked against.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from .errors import InvalidDistanceError
from .geometry import BoundingBox
from .quadtree import KeyFunc, dedupe


class BoxOracle(ABC):
    """
    Abstract base class for brute-force box query oracles.

    Results are returned deduplicated, in the order items were loaded.
    """

    @abstractmethod
    def load(self, items: Iterable[Any]) -> None:
        """
        Replace the oracle's item set.

        Args:
            items: Bounded items; repeated items are kept once
        """
        pass

    @abstractmethod
    def intersecting(self, query: BoundingBox) -> List[Any]:
        """
        Find every item whose box intersects the query box.

        Args:
            query: Query box

        Returns:
            Matching items
        """
        pass

    @abstractmethod
    def neighbors_within(self, distance: float, query: BoundingBox) -> List[Any]:
        """
        Find every item within `distance` of the query box.

        Args:
            distance: Maximum gap (non-negative)
            query: Query box

        Returns:
            Matching items, including those overlapping the query
        """
        pass

    def intersecting_batch(self, queries: List[BoundingBox]) -> List[List[Any]]:
        """
        Answer several overlap queries.

        Default implementation calls intersecting() for each query.
        Subclasses may override for better performance.

        Args:
            queries: List of query boxes

        Returns:
            List of result lists in the same order as the queries
        """
        return [self.intersecting(q) for q in queries]


def check_distance(distance: float) -> None:
    if not distance >= 0:
        raise InvalidDistanceError(f"distance must be non-negative, got {distance}")


class LinearScanOracle(BoxOracle):
    """
    Pure-Python oracle that tests every item on every query.

    Uses the same geometry predicates as the tree, so any disagreement
    points at the tree's traversal rather than at the geometry.
    """

    def __init__(self, items: Optional[Iterable[Any]] = None, key: Optional[KeyFunc] = None):
        self._key = key
        self._items: List[Any] = []
        if items is not None:
            self.load(items)

    def load(self, items: Iterable[Any]) -> None:
        self._items = dedupe(items, self._key)

    def __len__(self) -> int:
        return len(self._items)

    def intersecting(self, query: BoundingBox) -> List[Any]:
        return [item for item in self._items if item.box.intersects(query)]

    def neighbors_within(self, distance: float, query: BoundingBox) -> List[Any]:
        check_distance(distance)
        return [
            item for item in self._items
            if not item.box.separated_by_at_least(distance, query)
        ]
