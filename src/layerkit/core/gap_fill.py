"""Gap filling between perimeter loops.

Gaps are tried at two extrusion widths, widest first. For each width the
gaps that width can cover are isolated with a shrink-then-grow pass, filled
with a dense zig-zag and removed from the remaining set, so the narrower
width only targets what is still uncovered.
"""

import logging

from layerkit.core.clipper import diff_ex, noncollapsing_offset_ex, offset_ex, to_polygons
from layerkit.core.infill import Filler, RectilinearFiller
from layerkit.domain import (
    ExPolygon,
    ExtrusionPath,
    ExtrusionRole,
    LayerRegion,
    Polyline,
    Surface,
    SurfaceType,
)

logger = logging.getLogger(__name__)

# trial widths as fractions of the perimeter width
GAP_WIDTH_FACTORS = (1.0, 0.4)


class GapFiller:
    """Converts gap regions into short gap fill segments."""

    def __init__(self, filler: Filler | None = None) -> None:
        """Initialize gap filler.

        Args:
            filler: Pattern generator to use (rectilinear for the layer when None)
        """
        self.filler = filler

    def fill_gaps(self, layerm: LayerRegion, gaps: list[ExPolygon]) -> list[ExPolygon]:
        """Fill gaps of a layer region, appending to ``thin_fills``.

        Args:
            layerm: Layer region receiving the gap fill paths
            gaps: Gap regions recorded by the perimeter generator

        Returns:
            Gap area left uncovered after all trial widths
        """
        if not gaps:
            return []

        filler = self.filler or RectilinearFiller(layer_id=layerm.id)
        perimeter_flow = layerm.perimeter_flow

        for factor in GAP_WIDTH_FACTORS:
            flow = perimeter_flow.with_width(perimeter_flow.width * factor)
            half_width = 0.5 * flow.scaled_width

            # gaps this width can cover
            this_width = [
                expolygon
                for piece in noncollapsing_offset_ex(gaps, -half_width)
                for expolygon in offset_ex(piece.polygons(), +half_width)
            ]

            # infill boundary sits half an extrusion inside
            infill = [
                expolygon
                for covered in this_width
                for expolygon in offset_ex(covered.polygons(), -half_width)
            ]

            for expolygon in infill:
                params, polylines = filler.fill_surface(
                    Surface(expolygon=expolygon, surface_type=SurfaceType.INTERNAL_SOLID),
                    density=1.0,
                    flow_spacing=flow.spacing,
                )
                # single segments give the path ordering more entry points
                layerm.thin_fills.extend(
                    ExtrusionPath(
                        polyline=Polyline(points=[line.a, line.b]).simplified(flow.scaled_width / 3),
                        role=ExtrusionRole.GAP_FILL,
                        flow_spacing=params.flow_spacing,
                        height=layerm.height,
                    )
                    for polyline in polylines
                    for line in polyline.lines()
                )

            gaps = diff_ex(to_polygons(gaps), to_polygons(this_width))
            logger.debug(
                "Layer %d: %d gaps filled at width %.3f, %d left",
                layerm.id, len(this_width), flow.width, len(gaps)
            )

        if gaps:
            logger.debug("Layer %d: abandoning %d uncovered gaps", layerm.id, len(gaps))
        return gaps
