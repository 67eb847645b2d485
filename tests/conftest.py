"""Shared fixtures for layerkit tests."""

from collections.abc import Callable

import pytest

from layerkit.config import FlowConfig
from layerkit.domain import ExPolygon, Layer, LayerRegion, Region, Surface, SurfaceType
from layerkit.io import build_region


@pytest.fixture
def region() -> Region:
    """Region with the default flows (0.5 mm wide, 0.45 mm spacing)."""
    return build_region("default", FlowConfig())


@pytest.fixture
def make_layerm(region: Region) -> Callable[..., LayerRegion]:
    """Factory for a layer region with the given slices."""

    def factory(
        expolygons: list[ExPolygon] | None = None,
        layer_id: int = 1,
        surface_type: SurfaceType = SurfaceType.INTERNAL,
    ) -> LayerRegion:
        layer = Layer(id=layer_id, slice_z=0.2 * layer_id + 0.1, print_z=0.2 * layer_id + 0.2, height=0.2)
        layerm = layer.add_region(region)
        layerm.slices = [
            Surface(expolygon=expolygon, surface_type=surface_type) for expolygon in expolygons or []
        ]
        return layerm

    return factory
