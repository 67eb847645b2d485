"""Bridge direction detection.

A bottom surface resting on nothing must be bridged: its infill lines
should span between the parts of the layer below that support it. The
supported parts of the bridge boundary are its anchor edges:

- two anchor edges: lines run between the midpoints of the two edges
- one anchor edge with a bend: lines follow the straight chord of the
  edge, treating the surface as an overhang along it
- otherwise: a sweep over candidate directions keeps the one whose scan
  lines cover the most length with both ends anchored

Angles are in degrees in ``[0, 180)``, counter-clockwise from the X axis,
and give the direction the infill lines run in.
"""

import logging
import math

from layerkit.config import GeometryConfig
from layerkit.core.clipper import intersection_ex, intersection_pl, offset_ex, to_polygons
from layerkit.core.geometry import direction_degrees
from layerkit.domain import (
    BoundingBox,
    ExPolygon,
    LayerRegion,
    Line,
    Point,
    Polyline,
    Surface,
    scale,
)

logger = logging.getLogger(__name__)


def _join_at_common_end(first: Polyline, second: Polyline) -> Polyline | None:
    """Join two polylines sharing an endpoint; clipping may reverse open paths."""
    for a in (first, first.reversed()):
        for b in (second, second.reversed()):
            if a.last_point.coincides_with(b.first_point):
                return Polyline(points=a.points + b.points[1:])
    return None


class BridgeDetector:
    """Detects the best infill direction of bridges."""

    def __init__(self, geometry: GeometryConfig | None = None) -> None:
        self.geometry = geometry or GeometryConfig()

    def detect_angle(
        self, layerm: LayerRegion, expolygon: ExPolygon, lower_slices: list[Surface]
    ) -> float | None:
        """Find the bridging direction of a bottom surface.

        Args:
            layerm: Layer region the bridge belongs to (provides flows)
            expolygon: The bridge, not grown by any anchoring margin
            lower_slices: Slices of the layer below

        Returns:
            Angle in degrees, or None when nothing below supports the bridge
        """
        pwidth = layerm.perimeter_flow.scaled_width
        grown = offset_ex(expolygon.polygons(), +pwidth)
        edges = self.anchor_edges(grown, lower_slices)

        logger.debug("Layer %d: bridge with %d anchor edges", layerm.id, len(edges))
        if not edges:
            return None

        if len(edges) == 2:
            midpoints = [Line(edge.first_point, edge.last_point).midpoint() for edge in edges]
            return direction_degrees(Line(midpoints[0], midpoints[1]))

        if len(edges) == 1 and len(edges[0]) > 2:
            return direction_degrees(Line(edges[0].first_point, edges[0].last_point))

        anchors = intersection_ex(
            to_polygons(grown),
            to_polygons(s.expolygon for s in lower_slices),
            safety_offset=scale(self.geometry.clipper_safety_offset),
        )
        clip = offset_ex(expolygon.polygons(), +layerm.infill_flow.scaled_width)
        return self._sweep(clip, anchors, layerm.infill_flow.scaled_width, layerm.id)

    def anchor_edges(self, grown: list[ExPolygon], lower_slices: list[Surface]) -> list[Polyline]:
        """Parts of the grown bridge boundary lying on lower slices.

        Each lower slice contributes the boundary pieces inside its contour.
        When the boundary was opened inside a slice, the two resulting
        pieces are joined back into one.
        """
        boundary = [polygon.split_at_first_point() for polygon in to_polygons(grown)]
        edges: list[Polyline] = []

        for lower in lower_slices:
            clipped = intersection_pl(boundary, [lower.expolygon.contour])
            if len(clipped) == 2:
                joined = _join_at_common_end(*clipped)
                if joined is not None:
                    clipped = [joined]
            edges.extend(clipped)

        return edges

    def _sweep(
        self, clip: list[ExPolygon], anchors: list[ExPolygon], line_spacing: float, layer_id: int
    ) -> float | None:
        """Score candidate directions and return the best one.

        For each direction, parallel lines are clipped to the bridge and only
        those with both ends inside an anchor count. The first direction
        reaching the highest total length wins.
        """
        if not anchors or not clip or line_spacing <= 0:
            return None

        step = self.geometry.bridge_angle_step
        best_angle: float | None = None
        best_score = -1.0

        angle = 0.0
        while angle < 180.0:
            score = self._coverage(clip, anchors, angle, line_spacing)
            if score > best_score:
                best_angle, best_score = angle, score
            angle += step

        logger.debug(
            "Layer %d: bridge sweep picked %s (coverage %.0f)", layer_id, best_angle, best_score
        )
        return best_angle

    @staticmethod
    def _coverage(
        clip: list[ExPolygon], anchors: list[ExPolygon], angle: float, line_spacing: float
    ) -> float:
        """Total anchored length of scan lines running at ``angle`` degrees."""
        # rotate so the direction becomes vertical
        rotation = math.radians(90.0 - angle)
        clip_rotated = [e.rotated(rotation) for e in clip]
        anchors_rotated = [e.rotated(rotation) for e in anchors]

        bbox = BoundingBox.from_points(
            p for e in anchors_rotated + clip_rotated for p in e.contour.points
        )
        anchor_bbox = BoundingBox.from_points(p for e in anchors_rotated for p in e.contour.points)

        lines: list[Polyline] = []
        x = anchor_bbox.x_min + line_spacing / 2
        while x < anchor_bbox.x_max:
            column = round(x)
            lines.append(
                Polyline(points=[Point(column, bbox.y_min - 1), Point(column, bbox.y_max + 1)])
            )
            x += line_spacing

        score = 0.0
        for line in intersection_pl(lines, to_polygons(clip_rotated)):
            ends = (line.first_point, line.last_point)
            if all(any(a.contains_point(p) for a in anchors_rotated) for p in ends):
                score += line.length()
        return score
