"""
DuckDB-based oracle for bounding-box queries.

This module implements an oracle that loads item boxes into an in-memory
DuckDB table and answers overlap and neighbor queries in SQL, independent
of the Python geometry predicates the tree uses.
"""

from typing import Any, Iterable, List, Optional

import duckdb

from .geometry import BoundingBox
from .oracle import BoxOracle, check_distance
from .quadtree import KeyFunc, dedupe


class DuckDBOracle(BoxOracle):
    """
    Oracle implementation backed by an in-memory DuckDB table.

    Each loaded item becomes one row keyed by its load position; query
    results map row indices back to the original item objects.
    """

    def __init__(self, items: Optional[Iterable[Any]] = None, key: Optional[KeyFunc] = None):
        """
        Initialize the DuckDB oracle.

        Args:
            items: Optional bounded items to load immediately
            key: Optional identity function used to drop repeated items
        """
        self._key = key
        self._items: List[Any] = []

        self._con = duckdb.connect(":memory:")
        self._create_table()

        if items is not None:
            self.load(items)

    def _create_table(self) -> None:
        """Create the box table."""
        self._con.execute("""
            CREATE TABLE boxes (
                idx INTEGER,
                min_x DOUBLE,
                max_x DOUBLE,
                min_y DOUBLE,
                max_y DOUBLE
            )
        """)

    def load(self, items: Iterable[Any]) -> None:
        self._items = dedupe(items, self._key)
        self._con.execute("DELETE FROM boxes")

        rows = [
            (i, item.box.min_x, item.box.max_x, item.box.min_y, item.box.max_y)
            for i, item in enumerate(self._items)
        ]
        if rows:
            self._con.executemany("INSERT INTO boxes VALUES (?, ?, ?, ?, ?)", rows)

    def __len__(self) -> int:
        return len(self._items)

    def _fetch_items(self, query: str, params: List[float]) -> List[Any]:
        result = self._con.execute(query, params).fetchall()
        return [self._items[row[0]] for row in result]

    def intersecting(self, query: BoundingBox) -> List[Any]:
        """
        Find items overlapping the query box in a single SQL query.

        Args:
            query: Query box

        Returns:
            Matching items in load order
        """
        return self._fetch_items("""
            SELECT idx
            FROM boxes
            WHERE min_x <= ? AND max_x >= ? AND min_y <= ? AND max_y >= ?
            ORDER BY idx
        """, [query.max_x, query.min_x, query.max_y, query.min_y])

    def neighbors_within(self, distance: float, query: BoundingBox) -> List[Any]:
        """
        Find items within `distance` of the query box.

        The gap along each axis is computed with greatest(); an item matches
        when it overlaps the query or its Euclidean gap is below `distance`.

        Args:
            distance: Maximum gap (non-negative)
            query: Query box

        Returns:
            Matching items in load order
        """
        check_distance(distance)
        return self._fetch_items("""
            WITH gaps AS (
                SELECT
                    idx, min_x, max_x, min_y, max_y,
                    greatest(CAST(0 AS DOUBLE), ? - max_x, min_x - ?) AS dx,
                    greatest(CAST(0 AS DOUBLE), ? - max_y, min_y - ?) AS dy
                FROM boxes
            )
            SELECT idx
            FROM gaps
            WHERE (min_x <= ? AND max_x >= ? AND min_y <= ? AND max_y >= ?)
               OR sqrt(dx * dx + dy * dy) < ?
            ORDER BY idx
        """, [
            query.min_x, query.max_x,
            query.min_y, query.max_y,
            query.max_x, query.min_x, query.max_y, query.min_y,
            distance,
        ])

    def close(self) -> None:
        """Close the database connection."""
        if self._con:
            self._con.close()
            self._con = None

    def __del__(self):
        """Cleanup on garbage collection."""
        if getattr(self, "_con", None) is not None:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
