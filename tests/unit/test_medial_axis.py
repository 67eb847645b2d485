"""Tests for medial axis extraction."""

import pytest

from layerkit.core.clipper import diff
from layerkit.core.medial_axis import medial_axis
from layerkit.domain import ExPolygon, MedialAxisLoop, MedialAxisPath, Point, Polygon, scale


def rect(x0: float, y0: float, x1: float, y1: float) -> Polygon:
    return Polygon(
        points=[
            Point(round(scale(x0)), round(scale(y0))),
            Point(round(scale(x1)), round(scale(y0))),
            Point(round(scale(x1)), round(scale(y1))),
            Point(round(scale(x0)), round(scale(y1))),
        ]
    )


@pytest.fixture
def width() -> float:
    return scale(0.45)


class TestMedialAxis:
    """Tests for medial_axis."""

    def test_thin_strip_gives_open_path(self, width: float) -> None:
        strip = ExPolygon(contour=rect(0, 0, 10, 0.6))
        axes = medial_axis(strip, width)

        paths = [a for a in axes if isinstance(a, MedialAxisPath)]
        assert paths
        longest = max(paths, key=lambda a: a.length())
        assert longest.length() > scale(8)

    def test_path_runs_along_centre(self, width: float) -> None:
        strip = ExPolygon(contour=rect(0, 0, 10, 0.6))
        longest = max(medial_axis(strip, width), key=lambda a: a.length())
        assert isinstance(longest, MedialAxisPath)
        for point in longest.polyline.points:
            assert abs(point.y - scale(0.3)) < scale(0.05)

    def test_thin_ring_gives_loop(self, width: float) -> None:
        ring = diff([rect(0, 0, 10, 10)], [rect(0.6, 0.6, 9.4, 9.4)])
        contour = next(p for p in ring if p.is_counter_clockwise())
        hole = next(p for p in ring if not p.is_counter_clockwise())
        axes = medial_axis(ExPolygon(contour=contour, holes=[hole]), width)

        loops = [a for a in axes if isinstance(a, MedialAxisLoop)]
        assert len(loops) == 1
        assert loops[0].length() == pytest.approx(4 * scale(9.4), rel=0.05)

    def test_degenerate_input(self, width: float) -> None:
        line = ExPolygon(contour=Polygon(points=[Point(0, 0), Point(100, 0)]))
        assert medial_axis(line, width) == []

    def test_zero_width(self) -> None:
        assert medial_axis(ExPolygon(contour=rect(0, 0, 10, 0.6)), 0) == []
