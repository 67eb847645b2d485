"""Surface reconstruction and surface type detection.

Raw cross-section loops can be wrongly nested: overlapping facets in the
source mesh may produce two concentric loops with the same winding. Rather
than trusting a fill rule, loops are folded largest first into an
accumulator: non-negative loops are added, negative loops are subtracted.
A small grow-then-shrink pass then welds near-coincident edges.

Type detection splits each reconstructed slice into bottom, top and
internal pieces by comparing it with the slices of the neighbouring layers.
"""

import logging

from layerkit.config import GeometryConfig
from layerkit.core.clipper import diff, diff_ex, intersection_ex, offset2_ex, to_polygons, union
from layerkit.domain import LayerRegion, Polygon, Surface, SurfaceType, scale

logger = logging.getLogger(__name__)


class SurfaceBuilder:
    """Builds typed surfaces from raw slice loops.

    The builder holds configuration only and is safe for use in parallel
    processing.
    """

    def __init__(self, geometry: GeometryConfig | None = None) -> None:
        self.geometry = geometry or GeometryConfig()

    def make_surfaces(self, layerm: LayerRegion, loops: list[Polygon]) -> list[Surface]:
        """Reconstruct the slices of a layer region from raw loops.

        Args:
            layerm: Layer region whose ``slices`` are replaced
            loops: Raw closed loops; sign of the area gives the winding

        Returns:
            The new slices. Empty input leaves the existing slices untouched.
        """
        loops = [loop for loop in loops if len(loop) >= 3]
        if not loops:
            return layerm.slices

        accumulator: list[Polygon] = []
        for loop in sorted(loops, key=lambda p: abs(p.area()), reverse=True):
            if loop.area() >= 0:
                accumulator = [loop, *accumulator]
            else:
                accumulator = diff(accumulator, [loop])

        safety = scale(self.geometry.merge_safety_offset)
        layerm.slices = [
            Surface(expolygon=expolygon, surface_type=SurfaceType.INTERNAL)
            for expolygon in offset2_ex(accumulator, +safety, -safety)
        ]

        logger.debug(
            "Layer %d region %s: %d loops -> %d surfaces",
            layerm.id, layerm.region.name, len(loops), len(layerm.slices)
        )
        return layerm.slices


class SurfaceTypeDetector:
    """Splits slices into bottom, top and internal pieces.

    Bottom is what the layer below does not support, top is what the layer
    above does not cover. Bottom wins where both apply. Pieces smaller than
    the layer region's solid infill spacing squared stay internal.
    """

    def detect_surface_types(
        self,
        layerm: LayerRegion,
        lower_slices: list[Surface] | None,
        upper_slices: list[Surface] | None,
    ) -> list[Surface]:
        """Assign surface types to the slices of a layer region.

        Also clips ``fill_surfaces`` to the typed slices, so that every fill
        surface takes the type of the slice it lies in.

        Args:
            layerm: Layer region to update in place
            lower_slices: Slices of the layer below (None on the first layer)
            upper_slices: Slices of the layer above (None on the last layer)

        Returns:
            The typed slices
        """
        min_area = layerm.solid_infill_flow.scaled_spacing ** 2
        lower = to_polygons(s.expolygon for s in lower_slices or [])
        upper = to_polygons(s.expolygon for s in upper_slices or [])

        source_count = len(layerm.slices)
        typed: list[Surface] = []
        for surface in layerm.slices:
            polygons = surface.expolygon.polygons()

            if lower_slices is None:
                bottom = [surface.expolygon]
            else:
                bottom = [e for e in diff_ex(polygons, lower) if e.area() >= min_area]

            bottom_polygons = to_polygons(bottom)
            if upper_slices is None:
                top = diff_ex(polygons, bottom_polygons)
            else:
                top = diff_ex(diff(polygons, upper), bottom_polygons)
            top = [e for e in top if e.area() >= min_area]

            internal = diff_ex(polygons, union(bottom_polygons + to_polygons(top)))

            typed.extend(surface.clone(expolygon=e, surface_type=SurfaceType.BOTTOM) for e in bottom)
            typed.extend(surface.clone(expolygon=e, surface_type=SurfaceType.TOP) for e in top)
            typed.extend(surface.clone(expolygon=e, surface_type=SurfaceType.INTERNAL) for e in internal)

        layerm.slices = typed

        if layerm.fill_surfaces:
            boundary = to_polygons(s.expolygon for s in layerm.fill_surfaces)
            layerm.fill_surfaces = [
                surface.clone(expolygon=e)
                for surface in typed
                for e in intersection_ex(surface.expolygon.polygons(), boundary)
            ]

        logger.debug(
            "Layer %d region %s: typed %d slices into %d surfaces",
            layerm.id, layerm.region.name, source_count, len(typed)
        )
        return typed
