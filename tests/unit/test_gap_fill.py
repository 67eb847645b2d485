"""Tests for gap filling."""

import pytest

from layerkit.config import PrintConfig
from layerkit.core.clipper import total_area
from layerkit.core.gap_fill import GAP_WIDTH_FACTORS, GapFiller
from layerkit.core.perimeters import PerimeterGenerator
from layerkit.domain import ExPolygon, ExtrusionPath, ExtrusionRole, Point, Polygon, scale


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
def strip() -> ExPolygon:
    return ExPolygon(contour=rect(0, 0, 1.5, 10))


class TestGapFiller:
    """Tests for GapFiller.fill_gaps."""

    def test_widths_widest_first(self) -> None:
        assert list(GAP_WIDTH_FACTORS) == sorted(GAP_WIDTH_FACTORS, reverse=True)

    def test_no_gaps(self, make_layerm) -> None:
        layerm = make_layerm()
        assert GapFiller().fill_gaps(layerm, []) == []
        assert layerm.thin_fills == []

    def test_strip_is_filled(self, make_layerm, strip: ExPolygon) -> None:
        layerm = make_layerm()
        remaining = GapFiller().fill_gaps(layerm, [strip])

        assert layerm.thin_fills
        assert all(isinstance(e, ExtrusionPath) for e in layerm.thin_fills)
        assert all(e.role == ExtrusionRole.GAP_FILL for e in layerm.thin_fills)
        assert all(e.height == layerm.height for e in layerm.thin_fills)
        assert total_area(remaining) < total_area([strip])

    def test_segments_are_single_lines(self, make_layerm, strip: ExPolygon) -> None:
        layerm = make_layerm()
        GapFiller().fill_gaps(layerm, [strip])
        assert all(len(e.polyline) == 2 for e in layerm.thin_fills)

    def test_fill_stays_inside_gap(self, make_layerm, strip: ExPolygon) -> None:
        layerm = make_layerm()
        GapFiller().fill_gaps(layerm, [strip])
        tolerance = scale(0.01)
        for entity in layerm.thin_fills:
            for p in entity.polyline.points:
                assert -tolerance <= p.x <= scale(1.5) + tolerance
                assert -tolerance <= p.y <= scale(10) + tolerance

    def test_gap_too_narrow_is_abandoned(self, make_layerm) -> None:
        layerm = make_layerm()
        sliver = ExPolygon(contour=rect(0, 0, 0.1, 10))
        remaining = GapFiller().fill_gaps(layerm, [sliver])

        assert layerm.thin_fills == []
        assert total_area(remaining) == pytest.approx(total_area([sliver]), rel=1e-3)

    def test_narrow_width_fills_what_wide_width_cannot(self, make_layerm) -> None:
        layerm = make_layerm()
        # too narrow for 0.5 mm, wide enough for 0.2 mm
        gap = ExPolygon(contour=rect(0, 0, 0.35, 10))
        GapFiller().fill_gaps(layerm, [gap])

        assert layerm.thin_fills
        assert all(e.flow_spacing == pytest.approx(0.18) for e in layerm.thin_fills)

    def test_remaining_gaps_never_grow(self, make_layerm, strip: ExPolygon) -> None:
        layerm = make_layerm()
        gaps = [
            strip,
            ExPolygon(contour=rect(5, 0, 5.35, 10)),
            ExPolygon(contour=rect(8, 0, 8.1, 10)),
        ]
        remaining = GapFiller().fill_gaps(layerm, gaps)

        assert total_area(remaining) < total_area(gaps)
        # the sliver too narrow for either width is left over
        assert total_area(remaining) >= scale(0.1) * scale(10) * 0.99


class TestGapDetection:
    """Gaps found between perimeter loops reach the gap filler."""

    def test_gap_between_loops_is_filled(self, make_layerm) -> None:
        # 2.4 mm is too narrow for two loops side by side plus a third
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 2.4, 20))])
        PerimeterGenerator(PrintConfig(perimeters=3)).make_perimeters(layerm)
        assert any(e.role == ExtrusionRole.GAP_FILL for e in layerm.thin_fills)

    def test_gap_fill_disabled_by_speed(self, make_layerm) -> None:
        layerm = make_layerm([ExPolygon(contour=rect(0, 0, 2.4, 20))])
        PerimeterGenerator(PrintConfig(perimeters=3, gap_fill_speed=0)).make_perimeters(layerm)
        assert layerm.thin_fills == []
