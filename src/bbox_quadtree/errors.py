"""Exception types raised by bbox_quadtree."""


class QuadTreeError(Exception):
    """Base class for errors raised by this package."""


class InvalidCapacityError(QuadTreeError, ValueError):
    """Leaf capacity must be a positive integer."""


class InvalidDistanceError(QuadTreeError, ValueError):
    """Neighbor search distance must be a non-negative number."""


class TreeInvariantError(QuadTreeError):
    """
    Raised by QuadTree.assert_valid() when structural validation fails.

    The failing ValidationResult is available as `result`.
    """

    def __init__(self, result):
        super().__init__(result.detail)
        self.result = result
