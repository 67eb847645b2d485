"""Tests for path ordering and direction helpers."""

import pytest

from layerkit.core.geometry import chain_extrusions, chained_path, direction_degrees
from layerkit.domain import (
    ExtrusionLoop,
    ExtrusionPath,
    ExtrusionRole,
    Line,
    Point,
    Polygon,
    Polyline,
)


def path(*coords: tuple[int, int]) -> ExtrusionPath:
    return ExtrusionPath(
        polyline=Polyline(points=[Point(x, y) for x, y in coords]),
        role=ExtrusionRole.EXTERNAL_PERIMETER,
        flow_spacing=0.45,
    )


def tour_length(points: list[Point], order: list[int]) -> float:
    return sum(points[a].distance_to(points[b]) for a, b in zip(order, order[1:]))


class TestChainedPath:
    """Tests for chained_path."""

    def test_nearest_neighbour_walk(self) -> None:
        points = [Point(0, 0), Point(10, 0), Point(1, 0), Point(5, 0)]
        assert chained_path(points) == [0, 2, 3, 1]

    def test_start_position(self) -> None:
        points = [Point(0, 0), Point(10, 0), Point(5, 0)]
        assert chained_path(points, start=Point(11, 0)) == [1, 2, 0]

    def test_empty(self) -> None:
        assert chained_path([]) == []

    def test_ties_keep_input_order(self) -> None:
        points = [Point(0, 0), Point(-1, 0), Point(1, 0)]
        assert chained_path(points) == [0, 1, 2]

    def test_reordering_is_stable(self) -> None:
        points = [Point(0, 0), Point(100, 0), Point(30, 5), Point(60, -5), Point(10, 40)]
        order = chained_path(points)
        reordered = [points[i] for i in order]

        again = chained_path(reordered)
        assert again == list(range(len(points)))
        assert tour_length(reordered, again) == tour_length(points, order)


class TestChainExtrusions:
    """Tests for chain_extrusions."""

    def test_starts_nearest_origin(self) -> None:
        far = path((100, 0), (200, 0))
        near = path((10, 0), (50, 0))
        assert chain_extrusions([far, near]) == [near, far]

    def test_open_path_reversed_when_end_is_closer(self) -> None:
        first = path((0, 0), (10, 0))
        second = path((100, 0), (20, 0))

        ordered = chain_extrusions([first, second])
        assert ordered[1].first_point == Point(20, 0)
        assert ordered[1].last_point == Point(100, 0)

    def test_loops_never_reversed(self) -> None:
        square = Polygon(points=[Point(50, 0), Point(60, 0), Point(60, 10), Point(50, 10)])
        loop = ExtrusionLoop(polygon=square, role=ExtrusionRole.EXTERNAL_PERIMETER, flow_spacing=0.45)

        ordered = chain_extrusions([loop])
        assert ordered[0].polygon == square


class TestDirectionDegrees:
    """Tests for direction_degrees."""

    @pytest.mark.parametrize(
        "end, expected",
        [
            (Point(10, 0), 0.0),
            (Point(0, 10), 90.0),
            (Point(10, 10), 45.0),
            (Point(-10, 10), 135.0),
            (Point(-10, 0), 0.0),
            (Point(0, -10), 90.0),
        ],
    )
    def test_undirected(self, end: Point, expected: float) -> None:
        assert direction_degrees(Line(Point(0, 0), end)) == pytest.approx(expected)
