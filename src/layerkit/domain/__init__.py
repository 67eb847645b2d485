"""Domain models for layerkit.

This module contains the core domain models representing region geometry,
surfaces, extrusions, flows and layers. All models are designed to be:

- Immutable where possible (operations return new objects)
- Serializable for inter-process communication (parallel processing)
- Independent of the polygon kernel implementation

Key classes:
- Point, Line, Polyline, Polygon, ExPolygon: Scaled integer geometry
- Surface: A typed ExPolygon
- ExtrusionPath, ExtrusionLoop: Role-tagged output paths
- Flow: Extrusion width and spacing of one purpose
- Layer, LayerRegion, Region: The per-layer working sets
"""

from layerkit.domain.extrusion import (
    Extrusion,
    ExtrusionLoop,
    ExtrusionPath,
    ExtrusionRole,
    MedialAxis,
    MedialAxisLoop,
    MedialAxisPath,
    extrusion_from_dict,
)
from layerkit.domain.flow import Flow, FlowRole
from layerkit.domain.geometry import (
    SCALING_FACTOR,
    BoundingBox,
    ExPolygon,
    Line,
    Point,
    Polygon,
    Polyline,
    scale,
    unscale,
)
from layerkit.domain.layer import Layer, LayerRef, LayerRegion, Region
from layerkit.domain.surface import Surface, SurfaceType, filter_by_type, group_surfaces

__all__: list[str] = [
    # Enums
    "ExtrusionRole",
    "FlowRole",
    "SurfaceType",
    # Geometry
    "SCALING_FACTOR",
    "BoundingBox",
    "ExPolygon",
    "Line",
    "Point",
    "Polygon",
    "Polyline",
    "scale",
    "unscale",
    # Surfaces and extrusions
    "Extrusion",
    "ExtrusionLoop",
    "ExtrusionPath",
    "MedialAxis",
    "MedialAxisLoop",
    "MedialAxisPath",
    "Surface",
    "extrusion_from_dict",
    "filter_by_type",
    "group_surfaces",
    # Layers
    "Flow",
    "Layer",
    "LayerRef",
    "LayerRegion",
    "Region",
]
