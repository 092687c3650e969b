"""
Quadtree data structures for bounding-box items.

This module defines the immutable quadtree nodes and the QuadTree value
that wraps them. Items are anything exposing a `box` attribute; an item
whose box crosses quadrant boundaries is stored in every leaf it
intersects. Every operation returns a new QuadTree and shares the
subtrees it did not touch, so older tree values stay valid.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterable, Iterator, List, Optional, Tuple
import logging

from .errors import InvalidCapacityError, InvalidDistanceError, TreeInvariantError
from .geometry import BoundingBox, box_of
from .validation import ValidationResult, can_separate, validate_tree

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16

KeyFunc = Callable[[Any], Hashable]
LeafInfo = Tuple[BoundingBox, Tuple[Any, ...], int]


@dataclass(frozen=True)
class TreeConfig:
    """Configuration shared by every node of one tree."""

    capacity: int
    """Maximum items per leaf before it splits."""

    max_depth: int = DEFAULT_MAX_DEPTH
    """Depth at which leaves stop splitting and overflow instead."""

    def __post_init__(self):
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise InvalidCapacityError(
                f"capacity must be an int, got {type(self.capacity).__name__}"
            )
        if self.capacity < 1:
            raise InvalidCapacityError(f"capacity must be at least 1, got {self.capacity}")
        if self.max_depth < 0:
            raise ValueError("max_depth must be non-negative")


def dedupe(items: Iterable[Any], key: Optional[KeyFunc] = None) -> List[Any]:
    """
    Remove repeated items, keeping the first occurrence of each.

    Hashable keys are tracked in a set; unhashable ones fall back to a
    linear equality scan.
    """
    seen = set()
    seen_unhashable: List[Any] = []
    unique = []

    for item in items:
        k = key(item) if key is not None else item
        try:
            if k in seen:
                continue
            seen.add(k)
        except TypeError:
            if k in seen_unhashable:
                continue
            seen_unhashable.append(k)
        unique.append(item)

    return unique


def _matcher(target: Any, key: Optional[KeyFunc]) -> Callable[[Any], bool]:
    if key is None:
        return lambda item: item == target
    target_key = key(target)
    return lambda item: key(item) == target_key


class QuadTreeNode(ABC):
    """Abstract base class for quadtree nodes."""

    region: BoundingBox

    @abstractmethod
    def is_leaf(self) -> bool:
        """Return True if this is a leaf node."""
        pass

    @abstractmethod
    def insert(self, item: Any, config: TreeConfig, depth: int) -> QuadTreeNode:
        """
        Insert an item into this subtree.

        Args:
            item: Bounded item to insert
            config: Tree configuration (capacity and depth cap)
            depth: Depth of this node (root is 0)

        Returns:
            The new subtree, or self if the item misses this region
        """
        pass

    @abstractmethod
    def remove(self, matches: Callable[[Any], bool]) -> QuadTreeNode:
        """Return the subtree without any item for which `matches` is true."""
        pass

    @abstractmethod
    def iter_leaves(self, depth: int) -> Iterator[LeafInfo]:
        """Yield (region, items, depth) for every leaf in NW, NE, SW, SE order."""
        pass

    @abstractmethod
    def find_items(self, query: BoundingBox, found: List[Any]) -> None:
        """Append every item of every leaf whose region meets `query`."""
        pass

    @abstractmethod
    def neighbors(self, distance: float, query: BoundingBox, found: List[Any]) -> None:
        """Append items not separated from `query` by at least `distance`."""
        pass

    @abstractmethod
    def map_items(self, fn: Callable[[Any], Any]) -> QuadTreeNode:
        """Apply `fn` to every stored item, keeping the shape."""
        pass

    @abstractmethod
    def apply_items(
        self, fn: Callable[[Any, Tuple[Any, ...]], Any], include_self: bool
    ) -> QuadTreeNode:
        """Replace each item with fn(item, leaf_items), keeping the shape."""
        pass

    @abstractmethod
    def item_count(self) -> int:
        """Return number of stored items, counting replicas."""
        pass

    @abstractmethod
    def node_count(self) -> int:
        """Return total number of nodes in this subtree."""
        pass

    @abstractmethod
    def leaf_count(self) -> int:
        """Return number of leaf nodes in this subtree."""
        pass

    @abstractmethod
    def max_depth(self) -> int:
        """Return maximum depth of this subtree."""
        pass


@dataclass(frozen=True)
class LeafNode(QuadTreeNode):
    """
    A leaf node holding the items whose boxes meet its region.

    Item order is insertion order, but callers should not rely on it.
    """
    region: BoundingBox
    items: Tuple[Any, ...] = ()

    def is_leaf(self) -> bool:
        return True

    def insert(self, item: Any, config: TreeConfig, depth: int) -> QuadTreeNode:
        if not item.box.intersects(self.region):
            return self

        items = self.items + (item,)
        if len(self.items) < config.capacity:
            return LeafNode(self.region, items)

        if depth >= config.max_depth:
            logger.debug(
                "Leaf %s at depth cap %d overflowing to %d items",
                self.region, depth, len(items),
            )
            return LeafNode(self.region, items)

        if not can_separate(self.region, items):
            # Every item meets every quadrant; a split would copy the leaf 4x
            logger.debug(
                "Leaf %s at depth %d cannot separate its %d items, overflowing",
                self.region, depth, len(items),
            )
            return LeafNode(self.region, items)

        logger.debug("Splitting leaf %s at depth %d", self.region, depth)
        node: QuadTreeNode = InternalNode.empty(self.region)
        for existing in items:
            node = node.insert(existing, config, depth)
        return node

    def remove(self, matches: Callable[[Any], bool]) -> QuadTreeNode:
        kept = tuple(item for item in self.items if not matches(item))
        if len(kept) == len(self.items):
            return self
        return LeafNode(self.region, kept)

    def iter_leaves(self, depth: int) -> Iterator[LeafInfo]:
        yield self.region, self.items, depth

    def find_items(self, query: BoundingBox, found: List[Any]) -> None:
        if self.region.intersects(query):
            found.extend(self.items)

    def neighbors(self, distance: float, query: BoundingBox, found: List[Any]) -> None:
        for item in self.items:
            if not item.box.separated_by_at_least(distance, query):
                found.append(item)

    def map_items(self, fn: Callable[[Any], Any]) -> QuadTreeNode:
        return LeafNode(self.region, tuple(fn(item) for item in self.items))

    def apply_items(
        self, fn: Callable[[Any, Tuple[Any, ...]], Any], include_self: bool
    ) -> QuadTreeNode:
        neighbors = self.items
        updated = []
        for i, item in enumerate(neighbors):
            if include_self:
                updated.append(fn(item, neighbors))
            else:
                updated.append(fn(item, neighbors[:i] + neighbors[i + 1:]))
        return LeafNode(self.region, tuple(updated))

    def item_count(self) -> int:
        return len(self.items)

    def node_count(self) -> int:
        return 1

    def leaf_count(self) -> int:
        return 1

    def max_depth(self) -> int:
        return 0


@dataclass(frozen=True)
class InternalNode(QuadTreeNode):
    """
    An internal node with exactly 4 children.

    Children are ordered: NW, NE, SW, SE (indices 0-3), and always cover
    region.quadrants() in that order.
    """
    region: BoundingBox
    children: Tuple[QuadTreeNode, ...]

    def __post_init__(self):
        if len(self.children) != 4:
            raise ValueError("InternalNode must have exactly 4 children")

    @classmethod
    def empty(cls, region: BoundingBox) -> InternalNode:
        """Create a node over `region` with four empty quadrant leaves."""
        return cls(region, tuple(LeafNode(q) for q in region.quadrants()))

    def is_leaf(self) -> bool:
        return False

    def _rebuild(self, children: Iterable[QuadTreeNode]) -> InternalNode:
        children = tuple(children)
        if all(new is old for new, old in zip(children, self.children)):
            return self
        return InternalNode(self.region, children)

    def insert(self, item: Any, config: TreeConfig, depth: int) -> QuadTreeNode:
        if not item.box.intersects(self.region):
            return self
        # Each child re-tests intersection against its own region
        return self._rebuild(
            child.insert(item, config, depth + 1) for child in self.children
        )

    def remove(self, matches: Callable[[Any], bool]) -> QuadTreeNode:
        return self._rebuild(child.remove(matches) for child in self.children)

    def iter_leaves(self, depth: int) -> Iterator[LeafInfo]:
        for child in self.children:
            yield from child.iter_leaves(depth + 1)

    def find_items(self, query: BoundingBox, found: List[Any]) -> None:
        if not self.region.intersects(query):
            return
        for child in self.children:
            child.find_items(query, found)

    def neighbors(self, distance: float, query: BoundingBox, found: List[Any]) -> None:
        for child in self.children:
            # Nothing beyond the gap can qualify
            if child.region.separated_by_at_least(distance, query):
                continue
            child.neighbors(distance, query, found)

    def map_items(self, fn: Callable[[Any], Any]) -> QuadTreeNode:
        return InternalNode(
            self.region, tuple(child.map_items(fn) for child in self.children)
        )

    def apply_items(
        self, fn: Callable[[Any, Tuple[Any, ...]], Any], include_self: bool
    ) -> QuadTreeNode:
        return InternalNode(
            self.region,
            tuple(child.apply_items(fn, include_self) for child in self.children),
        )

    def item_count(self) -> int:
        return sum(child.item_count() for child in self.children)

    def node_count(self) -> int:
        count = 1  # This node
        for child in self.children:
            count += child.node_count()
        return count

    def leaf_count(self) -> int:
        return sum(child.leaf_count() for child in self.children)

    def max_depth(self) -> int:
        return 1 + max(child.max_depth() for child in self.children)


class QuadTree:
    """
    A persistent region quadtree over bounded items.

    Every mutating method returns a new QuadTree; the receiver is never
    changed.
    """

    def __init__(
        self,
        root: QuadTreeNode,
        config: TreeConfig,
        key: Optional[KeyFunc] = None,
    ):
        """
        Initialize a quadtree.

        Args:
            root: The root node of the tree
            config: Capacity and depth cap shared by all nodes
            key: Optional identity function used for dedup and removal
                instead of item equality
        """
        self.root = root
        self.config = config
        self.key = key

    @classmethod
    def create(
        cls,
        region: BoundingBox,
        capacity: int,
        max_depth: int = DEFAULT_MAX_DEPTH,
        key: Optional[KeyFunc] = None,
    ) -> QuadTree:
        """
        Create an empty tree covering `region`.

        Args:
            region: Area the tree indexes; items outside it are ignored
            capacity: Maximum items per leaf (must be >= 1)
            max_depth: Depth at which leaves overflow instead of splitting
            key: Optional identity function for dedup and removal

        Raises:
            InvalidCapacityError: If capacity is not a positive int
        """
        config = TreeConfig(capacity=capacity, max_depth=max_depth)
        return cls(LeafNode(region), config, key)

    def _with_root(self, root: QuadTreeNode) -> QuadTree:
        if root is self.root:
            return self
        return QuadTree(root, self.config, self.key)

    def _empty(self) -> QuadTree:
        return QuadTree(LeafNode(self.region), self.config, self.key)

    @property
    def region(self) -> BoundingBox:
        """The bounding box covered by the whole tree."""
        return self.root.region

    @property
    def capacity(self) -> int:
        """Maximum items per leaf, shared by every node."""
        return self.config.capacity

    @property
    def max_depth(self) -> int:
        """Depth cap configured for this tree."""
        return self.config.max_depth

    # -- Tree core -----------------------------------------------------

    def insert(self, item: Any) -> QuadTree:
        """
        Insert an item into every leaf its box intersects.

        Items whose box misses the tree region are dropped silently and the
        same tree is returned.
        """
        return self._with_root(self.root.insert(item, self.config, 0))

    def insert_all(self, items: Iterable[Any]) -> QuadTree:
        """Insert items one at a time, in order."""
        root = self.root
        for item in items:
            root = root.insert(item, self.config, 0)
        return self._with_root(root)

    def remove(self, item: Any) -> QuadTree:
        """
        Remove every stored copy of `item`.

        Node shape is kept as is; empty subtrees are not merged.
        """
        return self._with_root(self.root.remove(_matcher(item, self.key)))

    def update(self, fn: Callable[[Any], Any], item: Any) -> QuadTree:
        """Replace `item` with fn(item), re-placing it by its new box."""
        return self.remove(item).insert(fn(item))

    def __len__(self) -> int:
        """Number of stored items, counting each replica once per leaf."""
        return self.root.item_count()

    def to_list(self) -> List[Any]:
        """Return the distinct items reachable from any leaf."""
        items: List[Any] = []
        for _, leaf_items, _ in self.leaves():
            items.extend(leaf_items)
        return dedupe(items, self.key)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())

    def __contains__(self, item: Any) -> bool:
        matches = _matcher(item, self.key)
        return any(
            matches(stored)
            for _, leaf_items, _ in self.leaves()
            for stored in leaf_items
        )

    def leaves(self) -> Iterator[LeafInfo]:
        """Iterate over (region, items, depth) for each leaf."""
        return self.root.iter_leaves(0)

    # -- Validation ----------------------------------------------------

    def validate(self) -> ValidationResult:
        """Check the structural invariants, returning the first violation."""
        return validate_tree(self.leaves(), self.capacity, self.max_depth)

    def is_valid(self) -> bool:
        return bool(self.validate())

    def assert_valid(self) -> None:
        """
        Raise if the tree breaks its structural invariants.

        Raises:
            TreeInvariantError: Carrying the failing ValidationResult
        """
        result = self.validate()
        if not result:
            raise TreeInvariantError(result)

    # -- Queries -------------------------------------------------------

    def find_items(self, query: Any) -> List[Any]:
        """
        Return every item sharing a leaf with the query box.

        This is a proximity lookup: items that do not themselves meet the
        query are included when they are co-located with it. Replicated
        items may appear more than once.

        Args:
            query: A BoundingBox or a bounded item
        """
        found: List[Any] = []
        self.root.find_items(box_of(query), found)
        return found

    def find_intersecting(self, query: Any) -> List[Any]:
        """Return the items from find_items() whose box meets the query box."""
        query_box = box_of(query)
        return [
            item for item in self.find_items(query_box)
            if item.box.intersects(query_box)
        ]

    def neighbors_within(self, distance: float, query: Any) -> List[Any]:
        """
        Return distinct items within `distance` of the query box.

        Overlapping items are always included. Subtrees whose region lies at
        least `distance` away are pruned.

        Args:
            distance: Maximum gap (non-negative)
            query: A BoundingBox or a bounded item

        Raises:
            InvalidDistanceError: If distance is negative or NaN
        """
        if not distance >= 0:
            raise InvalidDistanceError(f"distance must be non-negative, got {distance}")
        found: List[Any] = []
        self.root.neighbors(distance, box_of(query), found)
        return dedupe(found, self.key)

    # -- Bulk transforms -----------------------------------------------

    def map(self, fn: Callable[[Any], Any]) -> QuadTree:
        """
        Apply `fn` to every stored item, leaf by leaf.

        The tree shape is unchanged, so if `fn` moves boxes the result may
        break containment until reset().
        """
        return QuadTree(self.root.map_items(fn), self.config, self.key)

    def map_safe(self, fn: Callable[[Any], Any]) -> QuadTree:
        """map() followed by a full rebuild."""
        return self.map(fn).reset()

    def apply(
        self,
        fn: Callable[[Any, Tuple[Any, ...]], Any],
        include_self: bool = True,
    ) -> QuadTree:
        """
        Replace each item with fn(item, leaf_items).

        `leaf_items` holds the items of the same leaf before the update. It
        contains the item itself unless `include_self` is False.
        """
        return QuadTree(
            self.root.apply_items(fn, include_self), self.config, self.key
        )

    def apply_safe(
        self,
        fn: Callable[[Any, Tuple[Any, ...]], Any],
        include_self: bool = True,
    ) -> QuadTree:
        """apply() followed by a full rebuild."""
        return self.apply(fn, include_self).reset()

    def reset(self) -> QuadTree:
        """Rebuild a fresh tree of the same region from the distinct items."""
        items = self.to_list()
        logger.debug("Rebuilding tree over %s from %d items", self.region, len(items))
        return self._empty().insert_all(items)

    # -- Statistics ----------------------------------------------------

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree."""
        return self.root.node_count()

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes in the tree."""
        return self.root.leaf_count()

    @property
    def depth(self) -> int:
        """Maximum depth of the tree."""
        return self.root.max_depth()

    def __repr__(self) -> str:
        return (
            f"QuadTree(region={self.region}, capacity={self.capacity}, "
            f"items={len(self)}, leaves={self.leaf_count})"
        )
