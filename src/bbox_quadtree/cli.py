"""
Command-line interface for bbox-quadtree.

Provides commands for building random trees, cross-checking them against
a brute-force oracle and inspecting subdivision geometry.
"""

import argparse
import logging
import random
import sys
import time
from typing import List, Optional

from .builder import build_quadtree
from .duckdb_oracle import DuckDBOracle
from .geometry import BoundingBox, BoxItem
from .oracle import BoxOracle, LinearScanOracle
from .quadtree import DEFAULT_MAX_DEPTH, QuadTree
from .errors import QuadTreeError


def random_box(rng: random.Random, region: BoundingBox, max_extent: float) -> BoundingBox:
    """Generate a box with its lower corner inside `region`."""
    x = rng.uniform(region.min_x, region.max_x)
    y = rng.uniform(region.min_y, region.max_y)
    w = rng.uniform(0.0, max_extent)
    h = rng.uniform(0.0, max_extent)
    return BoundingBox(x, x + w, y, y + h)


def random_items(
    count: int, region: BoundingBox, max_extent: float, seed: int
) -> List[BoxItem]:
    """
    Generate deterministic random items for benchmarking and verification.

    Args:
        count: Number of items
        region: Area the items start in (they may extend past its edge)
        max_extent: Largest width or height of an item
        seed: Random seed

    Returns:
        List of BoxItem named item-0 .. item-{count-1}
    """
    rng = random.Random(seed)
    return [
        BoxItem(f"item-{i}", random_box(rng, region, max_extent))
        for i in range(count)
    ]


def square_region(size: float) -> BoundingBox:
    """Region [-size/2, size/2] on both axes."""
    half = size / 2
    return BoundingBox(-half, half, -half, half)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bbox-quadtree",
        description="Build and check bounding-box quadtrees",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a tree from random items and print statistics",
    )
    _add_tree_arguments(build_parser)

    # Verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Cross-check tree queries against a brute-force oracle",
    )
    _add_tree_arguments(verify_parser)
    verify_parser.add_argument(
        "-q", "--queries",
        type=int,
        default=200,
        help="Number of random queries (default: 200)",
    )
    verify_parser.add_argument(
        "-d", "--distance",
        type=float,
        default=5.0,
        help="Neighbor search distance (default: 5.0)",
    )
    verify_parser.add_argument(
        "--oracle",
        type=str,
        choices=["linear", "duckdb"],
        default="linear",
        help="Oracle used as ground truth (default: linear)",
    )

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show subdivision geometry for a region size and depth cap",
    )
    stats_parser.add_argument(
        "--size",
        type=float,
        default=1000.0,
        help="Region side length (default: 1000)",
    )
    stats_parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum tree depth (default: {DEFAULT_MAX_DEPTH})",
    )

    return parser


def _add_tree_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-n", "--count",
        type=int,
        default=1000,
        help="Number of random items (default: 1000)",
    )
    parser.add_argument(
        "-c", "--capacity",
        type=int,
        default=8,
        help="Maximum items per leaf (default: 8)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum tree depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--size",
        type=float,
        default=1000.0,
        help="Region side length (default: 1000)",
    )
    parser.add_argument(
        "--max-extent",
        type=float,
        default=20.0,
        help="Largest item width or height (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )


def _build_from_args(args: argparse.Namespace) -> QuadTree:
    region = square_region(args.size)
    items = random_items(args.count, region, args.max_extent, args.seed)

    start = time.perf_counter()
    tree, stats = build_quadtree(
        items, region, args.capacity, max_depth=args.max_depth
    )
    elapsed = time.perf_counter() - start

    print(f"Built tree over {region} in {elapsed * 1000:.1f} ms")
    print(f"\nTree statistics:")
    print(f"  Nodes: {stats.node_count}")
    print(f"  Leaf nodes: {stats.leaf_count}")
    print(f"  Internal nodes: {stats.internal_count}")
    print(f"  Max depth reached: {stats.max_depth_reached}")
    print(f"  Stored items: {stats.stored_items}")
    print(f"  Distinct items: {stats.distinct_items}")
    print(f"  Replication factor: {stats.replication_factor:.3f}")
    print(f"  Overflow leaves: {stats.overflow_leaves}")
    return tree


def cmd_build(args: argparse.Namespace) -> int:
    """Handle the build command."""
    print(f"Building tree from {args.count} items with capacity {args.capacity}...")
    try:
        tree = _build_from_args(args)
    except QuadTreeError as e:
        print(f"Error: {e}")
        return 1

    result = tree.validate()
    print(f"  Valid: {result.ok}")
    return 0 if result else 1


def _create_oracle(name: str) -> BoxOracle:
    if name == "duckdb":
        return DuckDBOracle()
    return LinearScanOracle()


def cmd_verify(args: argparse.Namespace) -> int:
    """Handle the verify command."""
    try:
        tree = _build_from_args(args)
    except QuadTreeError as e:
        print(f"Error: {e}")
        return 1

    oracle = _create_oracle(args.oracle)
    oracle.load(tree.to_list())
    print(f"\nChecking {args.queries} queries against {type(oracle).__name__}...")

    rng = random.Random(args.seed + 1)
    failures = 0
    try:
        for i in range(args.queries):
            query = random_box(rng, tree.region, args.max_extent * 4)

            expected = set(oracle.intersecting(query))
            actual = set(tree.find_intersecting(query))
            if actual != expected:
                failures += 1
                print(f"  Query {i} intersecting {query}: "
                      f"{len(actual - expected)} extra, {len(expected - actual)} missing")

            expected = set(oracle.neighbors_within(args.distance, query))
            actual = set(tree.neighbors_within(args.distance, query))
            if actual != expected:
                failures += 1
                print(f"  Query {i} neighbors within {args.distance} of {query}: "
                      f"{len(actual - expected)} extra, {len(expected - actual)} missing")
    finally:
        if isinstance(oracle, DuckDBOracle):
            oracle.close()

    if failures:
        print(f"FAILED: {failures} mismatched queries")
        return 1

    print("All queries match")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the stats command."""
    d = args.max_depth
    cell = args.size / (2 ** d)

    print(f"Subdivision statistics for depth cap {d}:")
    print(f"  Region side: {args.size}")
    print(f"  Leaves at full depth: {4 ** d:,}")
    print(f"  Smallest cell side: {cell}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "build":
        return cmd_build(args)
    elif args.command == "verify":
        return cmd_verify(args)
    elif args.command == "stats":
        return cmd_stats(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
