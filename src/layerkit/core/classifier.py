"""Fill surface relabeling from print settings."""

import logging

from layerkit.config import PrintConfig
from layerkit.domain import LayerRegion, Surface, SurfaceType, filter_by_type, scale

logger = logging.getLogger(__name__)


class FillSurfaceClassifier:
    """Relabels fill surfaces; geometry is never changed."""

    def __init__(self, printing: PrintConfig | None = None) -> None:
        self.printing = printing or PrintConfig()

    def prepare_fill_surfaces(self, layerm: LayerRegion) -> list[Surface]:
        """Apply solid layer counts and the small-area solid threshold.

        - No top solid layers: top surfaces become internal
        - No bottom solid layers: bottom surfaces become internal
        - With sparse infill, internal surfaces no larger than
          ``solid_infill_below_area`` become internal solid

        Args:
            layerm: Layer region whose ``fill_surfaces`` are relabeled

        Returns:
            The relabeled fill surfaces
        """
        surfaces = layerm.fill_surfaces

        if self.printing.top_solid_layers == 0:
            for surface in filter_by_type(surfaces, SurfaceType.TOP):
                surface.surface_type = SurfaceType.INTERNAL
        if self.printing.bottom_solid_layers == 0:
            for surface in filter_by_type(surfaces, SurfaceType.BOTTOM):
                surface.surface_type = SurfaceType.INTERNAL

        if self.printing.fill_density > 0:
            # an area threshold: scaled once per dimension
            min_area = scale(scale(self.printing.solid_infill_below_area))
            small = [s for s in filter_by_type(surfaces, SurfaceType.INTERNAL) if s.area() <= min_area]
            for surface in small:
                surface.surface_type = SurfaceType.INTERNAL_SOLID
            if small:
                logger.debug(
                    "Layer %d region %s: %d small internal surfaces made solid",
                    layerm.id, layerm.region.name, len(small)
                )

        return surfaces
