"""Infill pattern generation.

Fillers turn a boundary surface into open polylines covering it at a given
density. The region pipeline depends only on the ``Filler`` protocol; the
rectilinear pattern below is the one used for gap fill.
"""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from layerkit.core.clipper import intersection_pl, offset, to_polygons
from layerkit.domain import Point, Polygon, Polyline, Surface, scale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FillParams:
    """Parameters a filler actually used.

    Attributes:
        angle: Direction of the fill lines in degrees
        line_spacing: Distance between adjacent fill lines in mm
        flow_spacing: Flow spacing the lines are extruded with, in mm
    """

    angle: float
    line_spacing: float
    flow_spacing: float


class Filler(Protocol):
    """Anything that can fill a surface with paths."""

    def fill_surface(
        self, surface: Surface, density: float, flow_spacing: float
    ) -> tuple[FillParams, list[Polyline]]: ...


class RectilinearFiller:
    """Parallel scan lines joined into zig-zags.

    Lines run at ``angle`` degrees (rotated by 90 degrees on odd layers) or
    along the surface bridge angle when one is set. Consecutive lines on
    adjacent rows are joined into one polyline when the connecting move stays
    inside the surface.
    """

    def __init__(self, angle: float = 45.0, layer_id: int = 0):
        self.angle = angle
        self.layer_id = layer_id

    def _direction(self, surface: Surface) -> float:
        if surface.bridge_angle is not None:
            return surface.bridge_angle
        return (self.angle + (90.0 if self.layer_id % 2 else 0.0)) % 180.0

    def fill_surface(
        self, surface: Surface, density: float, flow_spacing: float
    ) -> tuple[FillParams, list[Polyline]]:
        """Fill a surface with scan lines.

        Args:
            surface: Boundary to fill
            density: Fill density in ``(0, 1]``
            flow_spacing: Spacing of the flow in mm

        Returns:
            The parameters used and the fill polylines (scaled units)
        """
        angle = self._direction(surface)
        params = FillParams(
            angle=angle,
            line_spacing=flow_spacing / density if density > 0 else 0.0,
            flow_spacing=flow_spacing,
        )
        if density <= 0 or flow_spacing <= 0 or surface.area() <= 0:
            return params, []

        distance = scale(params.line_spacing)
        radians = math.radians(angle)

        # rotate so the fill direction is horizontal
        expolygon = surface.expolygon.rotated(-radians)
        polygons = to_polygons([expolygon])
        bbox = expolygon.bounding_box()

        scan_lines: list[Polyline] = []
        y = bbox.y_min + distance / 2
        while y < bbox.y_max:
            row = round(y)
            scan_lines.append(
                Polyline(points=[Point(bbox.x_min - 1, row), Point(bbox.x_max + 1, row)])
            )
            y += distance

        segments = [
            seg if seg.first_point.x <= seg.last_point.x else seg.reversed()
            for seg in intersection_pl(scan_lines, polygons)
        ]
        segments.sort(key=lambda seg: (seg.first_point.y, seg.first_point.x))

        polylines = self._connect(segments, distance, offset(polygons, distance * 0.1))
        result = [Polyline(points=[p.rotated(radians) for p in pl.points]) for pl in polylines]

        logger.debug(
            "Rectilinear fill at %.1f deg: %d scan lines, %d polylines",
            angle, len(scan_lines), len(result)
        )
        return params, result

    def _connect(self, segments: list[Polyline], distance: float, grown: list[Polygon]) -> list[Polyline]:
        """Join row segments into zig-zags, alternating direction per row."""
        polylines: list[Polyline] = []
        current: list[Point] | None = None
        current_row: int | None = None
        flip = False

        for segment in segments:
            row = segment.first_point.y
            if row != current_row:
                flip = not flip if current_row is not None else False
            points = list(reversed(segment.points)) if flip else list(segment.points)

            if current is not None and current_row is not None and row != current_row:
                connector = Polyline(points=[current[-1], points[0]])
                if self._can_connect(connector, distance, grown):
                    current.extend(points)
                    current_row = row
                    continue

            if current is not None:
                polylines.append(Polyline(points=current))
            current = points
            current_row = row

        if current is not None:
            polylines.append(Polyline(points=current))
        return polylines

    @staticmethod
    def _can_connect(connector: Polyline, distance: float, grown: list[Polygon]) -> bool:
        length = connector.length()
        if length == 0 or length > distance * 2:
            return False
        pieces = intersection_pl([connector], grown)
        return len(pieces) == 1 and pieces[0].length() >= length - 2
