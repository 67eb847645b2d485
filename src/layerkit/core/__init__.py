"""Core processing algorithms for layerkit.

This module contains the core algorithms for:

- Polygon kernel operations (boolean operations, offsets, simplification)
- Surface reconstruction from raw slice loops and surface typing
- Perimeter generation with thin walls and gap detection
- Gap filling and rectilinear fill patterns
- Fill surface classification and external surface anchoring
- Bridge direction detection

All services are designed to be:
- Stateless apart from their configuration (safe for use in worker processes)
- Explicit about what they mutate (a single LayerRegion at a time)

Key functions:
- union_ex, diff_ex, intersection_ex: Boolean operations on polygons
- offset, offset_ex, offset2_ex: Miter-joined polygon offsets
- medial_axis: Centerlines of narrow regions
- chained_path: Greedy nearest-neighbour ordering

Key classes:
- SurfaceBuilder: Rebuilds slices from raw loops
- SurfaceTypeDetector: Types slices as top, bottom or internal
- PerimeterGenerator: Generates ordered perimeter loops
- GapFiller: Fills gaps between perimeters
- FillSurfaceClassifier: Relabels fill surfaces from settings
- ExternalSurfaceProcessor: Grows top and bottom surfaces
- BridgeDetector: Finds bridge infill directions
- LayerProcessor: Orchestrates processing of a layer stack
"""

from layerkit.core.bridge import BridgeDetector
from layerkit.core.classifier import FillSurfaceClassifier
from layerkit.core.clipper import (
    MITER_LIMIT,
    PolyNode,
    diff,
    diff_ex,
    intersection,
    intersection_ex,
    intersection_pl,
    noncollapsing_offset_ex,
    offset,
    offset2,
    offset2_ex,
    offset_ex,
    simplify_polygons,
    to_polygons,
    total_area,
    union,
    union_ex,
    union_pt,
)
from layerkit.core.external import ExternalSurfaceProcessor
from layerkit.core.gap_fill import GapFiller
from layerkit.core.geometry import chain_extrusions, chained_path, direction_degrees
from layerkit.core.infill import FillParams, Filler, RectilinearFiller
from layerkit.core.medial_axis import medial_axis
from layerkit.core.perimeters import PerimeterGenerator
from layerkit.core.processor import LayerProcessor, merged_slices, process_layer_region
from layerkit.core.surfaces import SurfaceBuilder, SurfaceTypeDetector

__all__ = [
    # Kernel
    "MITER_LIMIT",
    "PolyNode",
    "diff",
    "diff_ex",
    "intersection",
    "intersection_ex",
    "intersection_pl",
    "noncollapsing_offset_ex",
    "offset",
    "offset2",
    "offset2_ex",
    "offset_ex",
    "simplify_polygons",
    "to_polygons",
    "total_area",
    "union",
    "union_ex",
    "union_pt",
    # Geometry helpers
    "chain_extrusions",
    "chained_path",
    "direction_degrees",
    "medial_axis",
    # Pipeline stages
    "BridgeDetector",
    "ExternalSurfaceProcessor",
    "FillParams",
    "FillSurfaceClassifier",
    "Filler",
    "GapFiller",
    "PerimeterGenerator",
    "RectilinearFiller",
    "SurfaceBuilder",
    "SurfaceTypeDetector",
    # Processor
    "LayerProcessor",
    "merged_slices",
    "process_layer_region",
]
