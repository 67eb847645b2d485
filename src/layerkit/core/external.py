"""Anchoring of top and bottom surfaces.

Top and bottom surfaces are grown by a fixed margin so that their solid
infill anchors into the surrounding sparse infill. Bottom surfaces keep
priority where both would claim the same area, and the remaining surfaces
are cut back so the collection still tiles the same area.
"""

import logging

from layerkit.config import GeometryConfig, PrintConfig
from layerkit.core.bridge import BridgeDetector
from layerkit.core.clipper import diff_ex, intersection_ex, offset, offset_ex, to_polygons
from layerkit.domain import LayerRegion, Surface, SurfaceType, group_surfaces, scale

logger = logging.getLogger(__name__)


class ExternalSurfaceProcessor:
    """Grows external surfaces and repartitions the fill surfaces."""

    def __init__(
        self,
        printing: PrintConfig | None = None,
        geometry: GeometryConfig | None = None,
        bridge_detector: BridgeDetector | None = None,
    ) -> None:
        self.printing = printing or PrintConfig()
        self.geometry = geometry or GeometryConfig()
        self.bridge_detector = bridge_detector or BridgeDetector(self.geometry)

    def process_external_surfaces(
        self, layerm: LayerRegion, lower_slices: list[Surface] | None = None
    ) -> list[Surface]:
        """Grow top and bottom fill surfaces and replace ``fill_surfaces``.

        Args:
            layerm: Layer region to update
            lower_slices: Slices of the layer below, used for bridge detection
                (None on the first layer)

        Returns:
            The new fill surfaces
        """
        surfaces = layerm.fill_surfaces
        margin = scale(self.geometry.external_infill_margin)

        bottom: list[Surface] = []
        for surface in surfaces:
            if surface.surface_type != SurfaceType.BOTTOM:
                continue
            grown = offset_ex(surface.expolygon.polygons(), +margin)

            # detect on the ungrown surface: grown neighbours would merge and
            # thin anchors would be overrun
            angle = (
                self.bridge_detector.detect_angle(layerm, surface.expolygon, lower_slices)
                if lower_slices
                else None
            )
            bottom.extend(surface.clone(expolygon=e, bridge_angle=angle) for e in grown)

        bottom_polygons = to_polygons(s.expolygon for s in bottom)
        top: list[Surface] = []
        for surface in surfaces:
            if surface.surface_type != SurfaceType.TOP:
                continue
            grown = diff_ex(offset(surface.expolygon.polygons(), +margin), bottom_polygons)
            top.extend(surface.clone(expolygon=e) for e in grown)

        # without infill, external surfaces cannot extend over internal ones
        if self.printing.fill_density > 0:
            boundaries = surfaces
        else:
            boundaries = [s for s in surfaces if s.surface_type != SurfaceType.INTERNAL]
        boundary_polygons = to_polygons(s.expolygon for s in boundaries)
        safety = scale(self.geometry.clipper_safety_offset)

        new_surfaces: list[Surface] = []
        for group in group_surfaces(top + bottom):
            new_surfaces.extend(
                group[0].clone(expolygon=e)
                for e in intersection_ex(
                    to_polygons(s.expolygon for s in group), boundary_polygons, safety_offset=safety
                )
            )

        others = [
            s for s in surfaces if s.surface_type not in (SurfaceType.TOP, SurfaceType.BOTTOM)
        ]
        external_polygons = to_polygons(s.expolygon for s in new_surfaces)
        for group in group_surfaces(others):
            new_surfaces.extend(
                group[0].clone(expolygon=e)
                for e in diff_ex(to_polygons(s.expolygon for s in group), external_polygons)
            )

        layerm.fill_surfaces = new_surfaces
        logger.debug(
            "Layer %d region %s: %d bottom, %d top, %d fill surfaces",
            layerm.id, layerm.region.name, len(bottom), len(top), len(new_surfaces)
        )
        return new_surfaces
