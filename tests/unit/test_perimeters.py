"""Tests for perimeter generation."""

import pytest

from layerkit.config import PrintConfig
from layerkit.core.perimeters import PerimeterGenerator
from layerkit.domain import (
    ExPolygon,
    ExtrusionLoop,
    ExtrusionPath,
    ExtrusionRole,
    Point,
    Polygon,
    SurfaceType,
    scale,
)


def rect(x0: float, y0: float, x1: float, y1: float) -> Polygon:
    return Polygon(
        points=[
            Point(round(scale(x0)), round(scale(y0))),
            Point(round(scale(x1)), round(scale(y0))),
            Point(round(scale(x1)), round(scale(y1))),
            Point(round(scale(x0)), round(scale(y1))),
        ]
    )


def side(polygon: Polygon) -> float:
    bbox = polygon.bounding_box()
    return (bbox.x_max - bbox.x_min) / scale(1)


@pytest.fixture
def square_with_hole() -> ExPolygon:
    return ExPolygon(contour=rect(0, 0, 20, 20), holes=[rect(7, 7, 13, 13).reversed()])


class TestSolidSquare:
    """Perimeters of a plain 20 x 20 mm square."""

    def test_three_nested_loops(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)

        assert len(layerm.perimeters) == 3
        assert all(isinstance(loop, ExtrusionLoop) for loop in layerm.perimeters)
        assert all(loop.polygon.is_counter_clockwise() for loop in layerm.perimeters)

    def test_inner_loops_printed_first(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)

        sides = [side(loop.polygon) for loop in layerm.perimeters]
        assert sides == pytest.approx([17.7, 18.6, 19.5], abs=1e-3)
        assert [loop.role for loop in layerm.perimeters] == [
            ExtrusionRole.PERIMETER,
            ExtrusionRole.CONTOUR_INTERNAL_PERIMETER,
            ExtrusionRole.EXTERNAL_PERIMETER,
        ]

    def test_fill_surface_inside_last_loop(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)

        assert len(layerm.fill_surfaces) == 1
        fill = layerm.fill_surfaces[0]
        assert fill.surface_type == SurfaceType.INTERNAL
        assert side(fill.expolygon.contour) == pytest.approx(17.25, abs=1e-3)

    def test_no_gaps_on_square(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        remaining = PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)
        assert layerm.thin_fills == []
        assert remaining == []

    def test_flow_spacing_recorded(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        PerimeterGenerator(PrintConfig(perimeters=1)).make_perimeters(layerm)
        assert layerm.perimeters[0].flow_spacing == pytest.approx(0.45)

    def test_zero_perimeters(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        PerimeterGenerator(PrintConfig(perimeters=0)).make_perimeters(layerm)

        assert layerm.perimeters == []
        # fill boundary sits half a perimeter spacing plus half an infill spacing inside
        assert side(layerm.fill_surfaces[0].expolygon.contour) == pytest.approx(19.55, abs=1e-3)

    def test_extra_perimeters_per_surface(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        layerm.slices[0].extra_perimeters = 2
        PerimeterGenerator(PrintConfig(perimeters=1)).make_perimeters(layerm)
        assert len(layerm.perimeters) == 3

    def test_outputs_replaced(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 20, 20))])
        generator = PerimeterGenerator(PrintConfig(perimeters=2))
        generator.make_perimeters(layerm)
        generator.make_perimeters(layerm)
        assert len(layerm.perimeters) == 2
        assert len(layerm.fill_surfaces) == 1


class TestSquareWithHole:
    """Perimeters of a square with a centred square hole."""

    def test_emission_order(self, make_layerm, square_with_hole: ExPolygon) -> None:
        layerm = make_layerm([square_with_hole])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)

        loops = layerm.perimeters
        assert len(loops) == 6
        holes, contours = loops[:3], loops[3:]

        # hole loops from the innermost printed one outwards to the hole
        assert [side(loop.polygon) for loop in holes] == pytest.approx([8.3, 7.4, 6.5], abs=1e-3)
        assert all(loop.is_hole for loop in holes)
        assert holes[-1].role == ExtrusionRole.EXTERNAL_PERIMETER
        assert [loop.role for loop in holes[:2]] == [ExtrusionRole.PERIMETER] * 2

        assert [side(loop.polygon) for loop in contours] == pytest.approx([17.7, 18.6, 19.5], abs=1e-3)
        assert all(not loop.is_hole for loop in contours)
        assert [loop.role for loop in contours] == [
            ExtrusionRole.PERIMETER,
            ExtrusionRole.CONTOUR_INTERNAL_PERIMETER,
            ExtrusionRole.EXTERNAL_PERIMETER,
        ]

    def test_fill_surface_has_hole(self, make_layerm, square_with_hole: ExPolygon) -> None:
        layerm = make_layerm([square_with_hole])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)
        assert len(layerm.fill_surfaces) == 1
        assert len(layerm.fill_surfaces[0].expolygon.holes) == 1

    def test_external_perimeters_first(self, make_layerm, square_with_hole: ExPolygon) -> None:
        layerm = make_layerm([square_with_hole])
        PerimeterGenerator(PrintConfig(perimeters=3, external_perimeters_first=True)).make_perimeters(layerm)
        assert layerm.perimeters[0].role == ExtrusionRole.EXTERNAL_PERIMETER
        assert side(layerm.perimeters[0].polygon) == pytest.approx(19.5, abs=1e-3)

    def test_brim_reverses_first_layer_only(self, make_layerm, square_with_hole: ExPolygon) -> None:
        printing = PrintConfig(perimeters=3, brim_width=5.0)

        first = make_layerm([square_with_hole], layer_id=0)
        PerimeterGenerator(printing).make_perimeters(first)
        assert first.perimeters[0].role == ExtrusionRole.EXTERNAL_PERIMETER

        other = make_layerm([square_with_hole], layer_id=1)
        PerimeterGenerator(printing).make_perimeters(other)
        assert other.perimeters[0].role == ExtrusionRole.PERIMETER


class TestIslands:
    """Multiple islands on one layer."""

    def test_each_island_ends_with_its_external_loop(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10)), ExPolygon(contour=rect(20, 0, 30, 10))])
        PerimeterGenerator(PrintConfig(perimeters=2)).make_perimeters(layerm)

        roles = [loop.role for loop in layerm.perimeters]
        assert roles == [
            ExtrusionRole.CONTOUR_INTERNAL_PERIMETER,
            ExtrusionRole.EXTERNAL_PERIMETER,
        ] * 2
        assert len(layerm.fill_surfaces) == 2


class TestThinWalls:
    """Thin wall detection."""

    def test_fin_becomes_thin_wall_path(self, make_layerm) -> None:
        # 10 x 10 block with a 0.6 mm wide, 5 mm long fin
        shape = ExPolygon(
            contour=Polygon(
                points=[
                    Point(0, 0),
                    Point(round(scale(10)), 0),
                    Point(round(scale(10)), round(scale(4.7))),
                    Point(round(scale(15)), round(scale(4.7))),
                    Point(round(scale(15)), round(scale(5.3))),
                    Point(round(scale(10)), round(scale(5.3))),
                    Point(round(scale(10)), round(scale(10))),
                    Point(0, round(scale(10))),
                ]
            )
        )
        layerm = make_layerm([shape])
        PerimeterGenerator(PrintConfig(perimeters=2)).make_perimeters(layerm)

        thin = [e for e in layerm.perimeters if isinstance(e, ExtrusionPath)]
        assert thin
        assert all(e.role == ExtrusionRole.EXTERNAL_PERIMETER for e in thin)
        assert max(e.length() for e in thin) > scale(3)
        # the fin lies right of the block
        assert all(p.x >= scale(9.5) for e in thin for p in e.polyline.points)

    def test_thin_walls_disabled(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 0.6))])
        PerimeterGenerator(PrintConfig(perimeters=2, thin_walls=False)).make_perimeters(layerm)
        assert layerm.perimeters == []

    def test_slice_too_narrow_for_any_loop(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 0.6))])
        PerimeterGenerator(PrintConfig(perimeters=2)).make_perimeters(layerm)

        assert layerm.perimeters
        assert all(isinstance(e, ExtrusionPath) for e in layerm.perimeters)
        assert layerm.fill_surfaces == []
