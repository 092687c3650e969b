"""Tests for the command-line interface."""

from bbox_quadtree.cli import create_parser, main, random_items, square_region
from bbox_quadtree.geometry import BoundingBox


class TestHelpers:
    """Tests for CLI data helpers."""

    def test_square_region(self):
        assert square_region(20) == BoundingBox(-10, 10, -10, 10)

    def test_random_items_deterministic(self):
        region = square_region(100)
        assert random_items(20, region, 5.0, seed=1) == random_items(20, region, 5.0, seed=1)

    def test_random_items_start_in_region(self):
        region = square_region(100)
        for item in random_items(50, region, 5.0, seed=3):
            assert region.contains_point(item.box.min_x, item.box.min_y)
            assert item.box.width <= 5.0 + 1e-9
            assert item.box.height <= 5.0 + 1e-9


class TestMain:
    """Tests for CLI commands."""

    def test_no_command(self):
        assert main([]) == 1

    def test_parser_defaults(self):
        args = create_parser().parse_args(["verify"])
        assert args.oracle == "linear"
        assert args.capacity == 8
        assert args.seed == 42

    def test_stats(self, capsys):
        assert main(["stats", "--size", "1024", "--max-depth", "2"]) == 0
        out = capsys.readouterr().out
        assert "Leaves at full depth: 16" in out
        assert "Smallest cell side: 256.0" in out

    def test_build(self, capsys):
        assert main(["build", "-n", "300", "-c", "4", "--seed", "5"]) == 0
        out = capsys.readouterr().out
        assert "Distinct items: 300" in out
        assert "Valid: True" in out

    def test_build_invalid_capacity(self, capsys):
        assert main(["build", "-n", "10", "-c", "0"]) == 1
        assert "Error" in capsys.readouterr().out

    def test_verify_linear(self, capsys):
        assert main(["verify", "-n", "300", "-q", "25", "-c", "4"]) == 0
        assert "All queries match" in capsys.readouterr().out

    def test_verify_duckdb(self, capsys):
        assert main(["verify", "-n", "300", "-q", "25", "--oracle", "duckdb"]) == 0
        assert "All queries match" in capsys.readouterr().out

    def test_verbose(self, capsys):
        assert main(["-v", "build", "-n", "50", "-c", "2"]) == 0
