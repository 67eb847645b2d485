"""Geometric helpers shared by the pipeline stages.

This module provides core mathematical utilities for:
- Scaling between millimetres and fixed-point units
- Nearest-neighbour ("chained path") ordering of points and extrusions
- Angle conversions for bridge directions

All functions are pure, stateless, and designed for use in parallel processing.
"""

import math

from layerkit.domain import (
    SCALING_FACTOR,
    Extrusion,
    ExtrusionPath,
    Line,
    Point,
    scale,
    unscale,
)

__all__ = [
    "SCALING_FACTOR",
    "chain_extrusions",
    "chained_path",
    "direction_degrees",
    "scale",
    "unscale",
]


def chained_path(points: list[Point], start: Point | None = None) -> list[int]:
    """Order points by a greedy nearest-neighbour walk.

    The walk starts at the point nearest to ``start`` (or at the first point
    when no start is given) and repeatedly moves to the closest unvisited
    point. Ties keep input order, so the result is deterministic. This is a
    travel-reducing heuristic, not an optimal tour.

    Args:
        points: Points to order
        start: Optional position the walk should begin near

    Returns:
        Indices into ``points`` in visiting order

    Examples:
        >>> pts = [Point(0, 0), Point(10, 0), Point(1, 0)]
        >>> chained_path(pts)
        [0, 2, 1]
    """
    if not points:
        return []

    remaining = list(range(len(points)))
    if start is None:
        current = remaining.pop(0)
    else:
        current = min(remaining, key=lambda i: points[i].distance_to(start))
        remaining.remove(current)

    order = [current]
    while remaining:
        here = points[current]
        current = min(remaining, key=lambda i: here.distance_to(points[i]))
        remaining.remove(current)
        order.append(current)

    return order


def chain_extrusions(entities: list[Extrusion], start: Point | None = None) -> list[Extrusion]:
    """Order extrusions by nearest endpoint, reversing open paths when closer.

    Args:
        entities: Loops and paths to order
        start: Position the chain should begin near (origin when None)

    Returns:
        New list of extrusions in printing order
    """
    position = start if start is not None else Point(0, 0)
    remaining = list(entities)
    ordered: list[Extrusion] = []

    while remaining:
        best_index = 0
        best_distance = math.inf
        best_reverse = False
        for i, entity in enumerate(remaining):
            distance = entity.first_point.distance_to(position)
            if distance < best_distance:
                best_index, best_distance, best_reverse = i, distance, False
            if isinstance(entity, ExtrusionPath):
                distance = entity.last_point.distance_to(position)
                if distance < best_distance:
                    best_index, best_distance, best_reverse = i, distance, True

        entity = remaining.pop(best_index)
        if best_reverse and isinstance(entity, ExtrusionPath):
            entity = entity.reversed()
        ordered.append(entity)
        position = entity.last_point

    return ordered


def direction_degrees(line: Line) -> float:
    """Undirected direction of a line in degrees, in ``[0, 180)``."""
    degrees = math.degrees(line.direction())
    return 0.0 if degrees >= 180.0 else degrees
