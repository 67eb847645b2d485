"""Tests for rectilinear infill generation."""

import math

import pytest

from layerkit.core.clipper import intersection_pl, offset
from layerkit.core.infill import FillParams, RectilinearFiller
from layerkit.domain import ExPolygon, Point, Polygon, Surface, SurfaceType, scale


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
def square_surface() -> Surface:
    return Surface(expolygon=ExPolygon(contour=rect(0, 0, 10, 10)), surface_type=SurfaceType.INTERNAL_SOLID)


def segment_angles(polylines) -> set[int]:
    angles = set()
    for polyline in polylines:
        for line in polyline.lines():
            if line.length() > scale(1.5):
                angles.add(round(math.degrees(line.direction())) % 180)
    return angles


class TestRectilinearFiller:
    """Tests for RectilinearFiller."""

    def test_params(self, square_surface: Surface) -> None:
        params, _ = RectilinearFiller(angle=0.0).fill_surface(square_surface, 0.5, 0.45)
        assert params == FillParams(angle=0.0, line_spacing=0.9, flow_spacing=0.45)

    def test_horizontal_lines_cover_square(self, square_surface: Surface) -> None:
        _, polylines = RectilinearFiller(angle=0.0).fill_surface(square_surface, 1.0, 1.0)
        assert polylines
        assert segment_angles(polylines) == {0}

        # ten rows one millimetre apart
        rows = {p.y for polyline in polylines for p in polyline.points}
        assert len(rows) == 10

    def test_rows_are_connected_into_zigzag(self, square_surface: Surface) -> None:
        _, polylines = RectilinearFiller(angle=0.0).fill_surface(square_surface, 1.0, 1.0)
        assert len(polylines) == 1

    def test_lines_stay_inside(self, square_surface: Surface) -> None:
        _, polylines = RectilinearFiller().fill_surface(square_surface, 1.0, 0.5)
        grown = offset(square_surface.expolygon.polygons(), 10)
        for polyline in polylines:
            pieces = intersection_pl([polyline], grown)
            assert sum(piece.length() for piece in pieces) == pytest.approx(polyline.length(), abs=10)

    def test_odd_layers_rotate(self) -> None:
        assert RectilinearFiller(angle=45.0, layer_id=0)._direction(
            Surface(expolygon=ExPolygon(contour=rect(0, 0, 1, 1)))
        ) == 45.0
        assert RectilinearFiller(angle=45.0, layer_id=1)._direction(
            Surface(expolygon=ExPolygon(contour=rect(0, 0, 1, 1)))
        ) == 135.0

    def test_bridge_angle_wins(self, square_surface: Surface) -> None:
        bridge = square_surface.clone(bridge_angle=90.0)
        params, polylines = RectilinearFiller(angle=45.0, layer_id=1).fill_surface(bridge, 1.0, 1.0)
        assert params.angle == 90.0
        assert segment_angles(polylines) == {90}

    def test_zero_density_gives_nothing(self, square_surface: Surface) -> None:
        _, polylines = RectilinearFiller().fill_surface(square_surface, 0.0, 0.45)
        assert polylines == []

    def test_hole_is_skipped(self) -> None:
        framed = Surface(
            expolygon=ExPolygon(contour=rect(0, 0, 10, 10), holes=[rect(3, 3, 7, 7).reversed()])
        )
        _, polylines = RectilinearFiller(angle=0.0).fill_surface(framed, 1.0, 1.0)
        hole = rect(3.1, 3.1, 6.9, 6.9)
        for polyline in polylines:
            assert intersection_pl([polyline], [hole]) == []
