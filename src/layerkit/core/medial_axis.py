"""Medial axis extraction for thin regions.

The skeleton of a region too narrow for a full perimeter loop is
approximated from the Voronoi diagram of its densely sampled boundary:
Voronoi edges lying entirely inside the region run along its centre. Short
dangling branches produced near corners are pruned, and what remains is
merged into maximal chains.

Each chain is reported as a tagged variant: ``MedialAxisLoop`` when it
closes on itself, ``MedialAxisPath`` otherwise.
"""

import logging
from collections import Counter

import shapely
from shapely.errors import GEOSException
from shapely.geometry import LineString, MultiPoint
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import linemerge, voronoi_diagram

from layerkit.domain import (
    ExPolygon,
    MedialAxis,
    MedialAxisLoop,
    MedialAxisPath,
    Point,
    Polygon,
    Polyline,
)
from layerkit.exceptions import GeometryError

logger = logging.getLogger(__name__)


def _to_shapely(expolygon: ExPolygon) -> ShapelyPolygon:
    shape = ShapelyPolygon(
        shell=[p.to_tuple() for p in expolygon.contour.points],
        holes=[[p.to_tuple() for p in hole.points] for hole in expolygon.holes],
    )
    if not shape.is_valid:
        shape = shape.buffer(0)
    return shape


def _as_lines(geometry) -> list[LineString]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, LineString):
        return [geometry]
    return [g for g in geometry.geoms if isinstance(g, LineString)]


def _endpoint_key(coord) -> tuple[int, int]:
    return (round(coord[0]), round(coord[1]))


def _prune_spurs(lines: list[LineString], max_length: float) -> list[LineString]:
    """Drop dangling branches shorter than max_length until none remain.

    A branch is dangling when one end is free (degree 1) and the other ends
    on a junction (degree 3 or more).
    """
    while True:
        degree: Counter[tuple[int, int]] = Counter()
        for line in lines:
            degree[_endpoint_key(line.coords[0])] += 1
            degree[_endpoint_key(line.coords[-1])] += 1

        kept: list[LineString] = []
        for line in lines:
            start = degree[_endpoint_key(line.coords[0])]
            end = degree[_endpoint_key(line.coords[-1])]
            dangling = (start == 1 and end >= 3) or (end == 1 and start >= 3)
            if dangling and line.length < max_length:
                continue
            kept.append(line)

        if len(kept) == len(lines):
            return lines
        lines = _as_lines(linemerge(kept)) if kept else []


def medial_axis(expolygon: ExPolygon, width: float) -> list[MedialAxis]:
    """Compute the skeleton of a thin region.

    Args:
        expolygon: Region to skeletonize (scaled units)
        width: Nominal extrusion width the skeleton is generated for; sets the
            boundary sampling density and the spur pruning length

    Returns:
        Skeleton chains as MedialAxisLoop / MedialAxisPath variants

    Raises:
        GeometryError: If the geometry library rejects the region
    """
    if width <= 0 or len(expolygon.contour) < 3:
        return []

    try:
        shape = _to_shapely(expolygon)
        if shape.is_empty or shape.area == 0:
            return []

        dense = shapely.segmentize(shape, max_segment_length=width / 2)
        coords = list(dict.fromkeys(tuple(c) for c in shapely.get_coordinates(dense)))
        if len(coords) < 3:
            return []

        shapely.prepare(shape)
        edges = voronoi_diagram(MultiPoint(coords), edges=True)
        inside = [edge for edge in _as_lines(edges) if edge.length > 0 and shape.contains(edge)]
        if not inside:
            return []

        chains = _prune_spurs(_as_lines(linemerge(inside)), max_length=2 * width)
    except GEOSException as e:
        raise GeometryError("medial_axis", str(e)) from e

    result: list[MedialAxis] = []
    for chain in chains:
        chain = chain.simplify(width / 10)
        points = [Point(round(x), round(y)) for x, y in chain.coords]
        if chain.is_ring and len(points) > 3:
            result.append(MedialAxisLoop(polygon=Polygon(points=points[:-1])))
        elif len(points) >= 2:
            result.append(MedialAxisPath(polyline=Polyline(points=points)))

    logger.debug("Medial axis: %d chains at width %.0f", len(result), width)
    return result
