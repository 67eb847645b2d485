"""Tests for surface reconstruction and surface type detection."""

import pytest

from layerkit.core.clipper import union_ex
from layerkit.core.surfaces import SurfaceBuilder, SurfaceTypeDetector
from layerkit.domain import (
    ExPolygon,
    Flow,
    FlowRole,
    Layer,
    Point,
    Polygon,
    Region,
    Surface,
    SurfaceType,
    filter_by_type,
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


def mm2(value: float) -> float:
    return scale(scale(value))


def slices_of(*polygons: Polygon) -> list[Surface]:
    return [Surface(expolygon=e) for e in union_ex(list(polygons))]


class TestSurfaceBuilder:
    """Tests for SurfaceBuilder.make_surfaces."""

    def test_contour_with_hole(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(
            layerm, [rect(0, 0, 20, 20), rect(7, 7, 13, 13).reversed()]
        )

        assert len(surfaces) == 1
        assert surfaces[0].surface_type == SurfaceType.INTERNAL
        assert len(surfaces[0].expolygon.holes) == 1
        assert surfaces[0].area() == pytest.approx(mm2(400 - 36), rel=1e-4)
        assert layerm.slices is surfaces

    def test_island_inside_hole(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(
            layerm, [rect(0, 0, 20, 20), rect(4, 4, 16, 16).reversed(), rect(8, 8, 12, 12)]
        )
        assert len(surfaces) == 2
        assert sorted(len(s.expolygon.holes) for s in surfaces) == [0, 1]

    def test_same_winding_concentric_loops_merge(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(layerm, [rect(5, 5, 15, 15), rect(0, 0, 20, 20)])
        assert len(surfaces) == 1
        assert surfaces[0].expolygon.holes == []
        assert surfaces[0].area() == pytest.approx(mm2(400), rel=1e-4)

    def test_near_coincident_edges_welded(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(layerm, [rect(0, 0, 10, 10), rect(10.02, 0, 20, 10)])
        assert len(surfaces) == 1

    def test_separate_islands_kept(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(layerm, [rect(0, 0, 10, 10), rect(12, 0, 20, 10)])
        assert len(surfaces) == 2

    def test_orientation_of_result(self, make_layerm) -> None:
        layerm = make_layerm()
        surfaces = SurfaceBuilder().make_surfaces(
            layerm, [rect(0, 0, 20, 20), rect(7, 7, 13, 13).reversed()]
        )
        assert surfaces[0].expolygon.contour.is_counter_clockwise()
        assert not surfaces[0].expolygon.holes[0].is_counter_clockwise()

    def test_empty_loops_keep_existing_slices(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 5, 5))])
        existing = layerm.slices
        assert SurfaceBuilder().make_surfaces(layerm, []) is existing

    def test_degenerate_loops_ignored(self, make_layerm) -> None:
        layerm = make_layerm()
        segment = Polygon(points=[Point(0, 0), Point(1000, 0)])
        surfaces = SurfaceBuilder().make_surfaces(layerm, [rect(0, 0, 10, 10), segment])
        assert len(surfaces) == 1


class TestSurfaceTypeDetector:
    """Tests for SurfaceTypeDetector.detect_surface_types."""

    def test_first_layer_is_bottom(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))], layer_id=0)
        typed = SurfaceTypeDetector().detect_surface_types(layerm, None, slices_of(rect(0, 0, 10, 10)))
        assert [s.surface_type for s in typed] == [SurfaceType.BOTTOM]

    def test_last_layer_is_top(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        typed = SurfaceTypeDetector().detect_surface_types(layerm, slices_of(rect(0, 0, 10, 10)), None)
        assert [s.surface_type for s in typed] == [SurfaceType.TOP]

    def test_covered_layer_is_internal(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        full = slices_of(rect(0, 0, 10, 10))
        typed = SurfaceTypeDetector().detect_surface_types(layerm, full, full)
        assert [s.surface_type for s in typed] == [SurfaceType.INTERNAL]

    def test_overhang_split(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        typed = SurfaceTypeDetector().detect_surface_types(
            layerm, slices_of(rect(0, 0, 5, 10)), slices_of(rect(0, 0, 10, 10))
        )

        bottom = filter_by_type(typed, SurfaceType.BOTTOM)
        internal = filter_by_type(typed, SurfaceType.INTERNAL)
        assert len(bottom) == 1
        assert bottom[0].area() == pytest.approx(mm2(50), rel=1e-4)
        assert sum(s.area() for s in internal) == pytest.approx(mm2(50), rel=1e-4)
        assert layerm.slices is typed

    def test_bottom_wins_over_top(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        typed = SurfaceTypeDetector().detect_surface_types(layerm, [], [])
        assert [s.surface_type for s in typed] == [SurfaceType.BOTTOM]

    def test_tiny_uncovered_piece_stays_internal(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        # leaves a 0.3 x 0.3 mm corner unsupported
        lower = slices_of(rect(0, 0, 9.7, 10), rect(9.7, 0, 10, 9.7))
        typed = SurfaceTypeDetector().detect_surface_types(layerm, lower, slices_of(rect(0, 0, 10, 10)))
        assert filter_by_type(typed, SurfaceType.BOTTOM) == []
        assert sum(s.area() for s in typed) == pytest.approx(mm2(100), rel=1e-4)

    def test_small_piece_threshold_follows_layer_flow(self, make_layerm, region: Region) -> None:
        # a 10 x 0.2 mm overhanging strip
        lower = slices_of(rect(0, 0, 10, 9.8))
        full = slices_of(rect(0, 0, 10, 10))

        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))], layer_id=0)
        typed = SurfaceTypeDetector().detect_surface_types(layerm, lower, full)
        assert len(filter_by_type(typed, SurfaceType.BOTTOM)) == 1

        coarse = Region(
            name="coarse",
            flows=region.flows,
            first_layer_flows={FlowRole.SOLID_INFILL: Flow(width=2.0, spacing=2.0)},
        )
        layerm = Layer(id=0, slice_z=0.1, print_z=0.2, height=0.2).add_region(coarse)
        layerm.slices = [Surface(expolygon=ExPolygon(contour=rect(0, 0, 10, 10)))]
        typed = SurfaceTypeDetector().detect_surface_types(layerm, lower, full)
        assert filter_by_type(typed, SurfaceType.BOTTOM) == []

    def test_metadata_kept(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        layerm.slices[0].extra_perimeters = 2
        typed = SurfaceTypeDetector().detect_surface_types(layerm, slices_of(rect(0, 0, 5, 10)), None)
        assert all(s.extra_perimeters == 2 for s in typed)

    def test_fill_surfaces_take_slice_types(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 10, 10))])
        layerm.fill_surfaces = [Surface(expolygon=ExPolygon(contour=rect(1, 1, 9, 9)))]
        full = slices_of(rect(0, 0, 10, 10))
        SurfaceTypeDetector().detect_surface_types(layerm, slices_of(rect(0, 0, 5, 10)), full)

        bottom = filter_by_type(layerm.fill_surfaces, SurfaceType.BOTTOM)
        internal = filter_by_type(layerm.fill_surfaces, SurfaceType.INTERNAL)
        assert sum(s.area() for s in bottom) == pytest.approx(mm2(32), rel=1e-4)
        assert sum(s.area() for s in internal) == pytest.approx(mm2(32), rel=1e-4)
