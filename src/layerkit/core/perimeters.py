"""Perimeter generation.

Each slice is inset into concentric loops. The first loop sits half a
perimeter width inside the slice; every further loop sits one perimeter
spacing further in. Insets are double offsets (shrink further than needed,
then grow back) so that concave corners do not grow spikes.

While insetting, two kinds of leftovers are recorded:
- thin walls: parts of the slice too narrow to hold the first loop, later
  printed along their medial axis
- gaps: slivers between consecutive loops, handed to the gap filler

Loops of all slices are then nested into containment trees (one for
contour loops, one for hole loops) and linearized so that each island is
printed from the inside out, with the loops around its holes first.
"""

import logging
from dataclasses import dataclass, field, replace

from layerkit.config import GeometryConfig, PrintConfig
from layerkit.core.clipper import (
    PolyNode,
    diff,
    diff_ex,
    offset,
    offset2,
    offset2_ex,
    simplify_polygons,
    to_polygons,
    union_ex,
    union_pt,
)
from layerkit.core.gap_fill import GapFiller
from layerkit.core.geometry import chain_extrusions, chained_path
from layerkit.core.medial_axis import medial_axis
from layerkit.domain import (
    ExPolygon,
    Extrusion,
    ExtrusionLoop,
    ExtrusionPath,
    ExtrusionRole,
    LayerRegion,
    MedialAxisLoop,
    Polygon,
    Surface,
    scale,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _LoopState:
    """State threaded through the inset iterations.

    Attributes:
        last: Working ring set of the current slice (the innermost loop so far)
        last_gaps: Gaps found by the latest gap detection of the current slice
        contours: Counter-clockwise loops of all slices so far
        holes: Clockwise loops of all slices so far
        thin_walls: Regions too narrow for the first loop
        gaps: Gaps between loops of all slices so far
    """

    last: list[Polygon]
    last_gaps: list[ExPolygon] = field(default_factory=list)
    contours: list[Polygon] = field(default_factory=list)
    holes: list[Polygon] = field(default_factory=list)
    thin_walls: list[ExPolygon] = field(default_factory=list)
    gaps: list[ExPolygon] = field(default_factory=list)


class PerimeterGenerator:
    """Generates ordered perimeter loops, thin walls and fill boundaries.

    Example:
        generator = PerimeterGenerator(PrintConfig(perimeters=2))
        gaps_left = generator.make_perimeters(layerm)
    """

    def __init__(
        self,
        printing: PrintConfig | None = None,
        geometry: GeometryConfig | None = None,
        gap_filler: GapFiller | None = None,
    ) -> None:
        self.printing = printing or PrintConfig()
        self.geometry = geometry or GeometryConfig()
        self.gap_filler = gap_filler or GapFiller()

    def make_perimeters(self, layerm: LayerRegion) -> list[ExPolygon]:
        """Generate perimeters of a layer region.

        Replaces ``perimeters``, ``thin_fills`` and ``fill_surfaces`` of the
        layer region.

        Args:
            layerm: Layer region with reconstructed slices

        Returns:
            Gap area the gap filler could not cover
        """
        flow = layerm.perimeter_flow
        pwidth = flow.scaled_width
        pspacing = flow.scaled_spacing
        ispacing = layerm.solid_infill_flow.scaled_spacing

        layerm.perimeters = []
        layerm.fill_surfaces = []
        layerm.thin_fills = []

        state = _LoopState(last=[])
        for surface in layerm.slices:
            loop_count = self.printing.perimeters + (surface.extra_perimeters or 0)
            state = replace(state, last=surface.expolygon.polygons(), last_gaps=[])

            for i in range(1, loop_count + 1):
                state, consumed = self._inset(state, i, pwidth, pspacing)
                if consumed:
                    break

            layerm.fill_surfaces.extend(self._fill_boundary(surface, state, pspacing, ispacing))

        loops = self._order_loops(state.contours, state.holes, flow.spacing)
        if self.printing.external_perimeters_first or (
            layerm.id == 0 and self.printing.brim_width > 0
        ):
            loops.reverse()
        layerm.perimeters.extend(loops)

        thin_walls = self._thin_wall_paths(state.thin_walls, pspacing, flow.spacing)
        layerm.perimeters.extend(thin_walls)

        logger.debug(
            "Layer %d region %s: %d loops, %d thin walls, %d gaps",
            layerm.id, layerm.region.name, len(loops), len(thin_walls), len(state.gaps)
        )

        return self.gap_filler.fill_gaps(layerm, state.gaps)

    def _inset(
        self, state: _LoopState, i: int, pwidth: float, pspacing: float
    ) -> tuple[_LoopState, bool]:
        """Compute loop ``i`` of the current slice.

        Returns:
            The next state and True if the slice is fully consumed (no loop)
        """
        gap_area_threshold = pwidth**2
        thin_walls = state.thin_walls
        gaps = state.gaps
        last_gaps = state.last_gaps

        if i == 1:
            # thinnest printable wall: width/2 + spacing/2 + spacing/2 + width/2
            offsets = offset2(
                state.last, -(0.5 * pwidth + 0.5 * pspacing - 1), +(0.5 * pspacing - 1)
            )
            if self.printing.thin_walls:
                lost = diff_ex(state.last, offset(offsets, +0.5 * pwidth))
                thin_walls = thin_walls + [e for e in lost if e.area() >= gap_area_threshold]
        else:
            offsets = offset2(state.last, -(1.5 * pspacing - 1), +(0.5 * pspacing - 1))
            if self.printing.gap_fill_speed > 0 and self.printing.fill_density > 0:
                between = diff_ex(offset(state.last, -0.5 * pspacing), offset(offsets, +0.5 * pspacing))
                last_gaps = [e for e in between if e.area() >= gap_area_threshold]
                gaps = gaps + last_gaps

        state = replace(state, thin_walls=thin_walls, gaps=gaps, last_gaps=last_gaps)
        if not offsets:
            return state, True

        return (
            replace(
                state,
                last=offsets,
                contours=state.contours + [p for p in offsets if p.is_counter_clockwise()],
                holes=state.holes + [p for p in offsets if not p.is_counter_clockwise()],
            ),
            False,
        )

    def _fill_boundary(
        self, surface: Surface, state: _LoopState, pspacing: float, ispacing: float
    ) -> list[Surface]:
        """Area left for infill inside the innermost loop of a slice.

        Gaps of this slice are excluded since the gap filler covers them.
        """
        last = diff(state.last, to_polygons(state.last_gaps))
        simplified = simplify_polygons(
            to_polygons(union_ex(last)), scale(self.geometry.resolution)
        )
        return [
            surface.clone(expolygon=expolygon)
            for expolygon in offset2_ex(simplified, -(pspacing / 2 + ispacing / 2), +ispacing / 2)
        ]

    def _order_loops(
        self, contours: list[Polygon], holes: list[Polygon], flow_spacing: float
    ) -> list[Extrusion]:
        """Nest loops into containment trees and linearize them."""
        contour_roots = union_pt(contours)
        hole_pool = union_pt(holes)

        loops = self._traverse(contour_roots, 0, True, hole_pool, flow_spacing)

        # hole loops outside every contour
        if hole_pool:
            orphans = list(hole_pool)
            hole_pool.clear()
            loops.extend(self._traverse(orphans, 0, False, hole_pool, flow_spacing))

        return loops

    def _traverse(
        self,
        nodes: list[PolyNode],
        depth: int,
        is_contour: bool,
        hole_pool: list[PolyNode],
        flow_spacing: float,
    ) -> list[Extrusion]:
        """Emit the loops of a forest, children before parents.

        At the top level of the contour forest, the hole trees whose first
        point lies inside a contour are removed from ``hole_pool`` and
        emitted before that contour.
        """
        order = chained_path([node.polygon.first_point for node in nodes])
        loops: list[Extrusion] = []

        for node in (nodes[i] for i in order):
            if is_contour and depth == 0:
                enclosed = [
                    hole for hole in hole_pool if node.polygon.contains_point(hole.polygon.first_point)
                ]
                hole_pool[:] = [hole for hole in hole_pool if all(hole is not e for e in enclosed)]
                hole_loops = [
                    loop
                    for hole in enclosed
                    for loop in self._traverse([hole], 0, False, hole_pool, flow_spacing)
                ]
                loops.extend(reversed(hole_loops))

            loops.extend(self._traverse(node.children, depth + 1, is_contour, hole_pool, flow_spacing))

            # counter-clockwise contours and clockwise holes
            polygon = node.polygon
            if node.is_hole:
                polygon = polygon.reversed()
            if not is_contour:
                polygon = polygon.reversed()

            if (depth == 0) if is_contour else not node.children:
                role = ExtrusionRole.EXTERNAL_PERIMETER
            elif depth == 1 and is_contour:
                role = ExtrusionRole.CONTOUR_INTERNAL_PERIMETER
            else:
                role = ExtrusionRole.PERIMETER

            loops.append(ExtrusionLoop(polygon=polygon, role=role, flow_spacing=flow_spacing))

        return loops

    def _thin_wall_paths(
        self, thin_walls: list[ExPolygon], pspacing: float, flow_spacing: float
    ) -> list[Extrusion]:
        """Medial axis extrusions of thin walls, chained from the origin."""
        paths: list[Extrusion] = []
        for thin_wall in thin_walls:
            for axis in medial_axis(thin_wall, pspacing):
                if axis.length() <= pspacing * 2:
                    continue
                if isinstance(axis, MedialAxisLoop):
                    polygon = axis.polygon
                    if not polygon.is_counter_clockwise():
                        polygon = polygon.reversed()
                    paths.append(
                        ExtrusionLoop(
                            polygon=polygon,
                            role=ExtrusionRole.EXTERNAL_PERIMETER,
                            flow_spacing=flow_spacing,
                        )
                    )
                else:
                    paths.append(
                        ExtrusionPath(
                            polyline=axis.polyline,
                            role=ExtrusionRole.EXTERNAL_PERIMETER,
                            flow_spacing=flow_spacing,
                        )
                    )
        return chain_extrusions(paths)
