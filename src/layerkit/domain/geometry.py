"""Core geometric types for region geometry.

This module defines the fundamental geometric types used throughout layerkit.
All coordinates are scaled integers (see ``scale``):

- Point: A 2D point in scaled units
- Line: A segment between two points
- Polyline: An open chain of points
- Polygon: A closed vertex ring whose winding sign is meaningful
- ExPolygon: A contour with zero or more holes
- BoundingBox: Axis-aligned bounds of a point set

Winding convention: contours are counter-clockwise (positive signed area),
holes are clockwise (negative signed area).
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from shapely.geometry import LineString

# millimetres per scaled unit
SCALING_FACTOR = 0.000001


def scale(value: float) -> float:
    """Convert millimetres to scaled units."""
    return value / SCALING_FACTOR


def unscale(value: float) -> float:
    """Convert scaled units to millimetres."""
    return value * SCALING_FACTOR


@dataclass(frozen=True, slots=True)
class Point:
    """A point in scaled 2D space.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate in scaled units
        y: Y coordinate in scaled units
    """

    x: int
    y: int

    def to_tuple(self) -> tuple[int, int]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def coincides_with(self, other: "Point", tolerance: float = 1.0) -> bool:
        """Check whether two points are the same within a tolerance (scaled units)."""
        return abs(self.x - other.x) <= tolerance and abs(self.y - other.y) <= tolerance

    def rotated(self, angle: float, center: "Point | None" = None) -> "Point":
        """Rotate counter-clockwise by angle (radians) around center."""
        cx, cy = (center.x, center.y) if center is not None else (0, 0)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        dx = self.x - cx
        dy = self.y - cy
        return Point(
            round(cx + dx * cos_a - dy * sin_a),
            round(cy + dx * sin_a + dy * cos_a),
        )

    def to_list(self) -> list[int]:
        """Serialize to a two-element list."""
        return [self.x, self.y]

    @classmethod
    def from_list(cls, data: Iterable[float]) -> "Point":
        """Deserialize from an ``[x, y]`` sequence."""
        x, y = data
        return cls(round(x), round(y))


@dataclass(frozen=True, slots=True)
class Line:
    """A straight segment between two points."""

    a: Point
    b: Point

    def length(self) -> float:
        """Length of the segment."""
        return self.a.distance_to(self.b)

    def midpoint(self) -> Point:
        """Midpoint of the segment (rounded to scaled units)."""
        return Point(round((self.a.x + self.b.x) / 2), round((self.a.y + self.b.y) / 2))

    def direction(self) -> float:
        """Undirected angle of the segment in radians, in ``[0, pi)``."""
        angle = math.atan2(self.b.y - self.a.y, self.b.x - self.a.x)
        if angle < 0:
            angle += math.pi
        if angle >= math.pi:
            angle -= math.pi
        return angle


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned bounding box in scaled units."""

    x_min: int
    y_min: int
    x_max: int
    y_max: int

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "BoundingBox":
        """Build the bounding box of a point set.

        Raises:
            ValueError: If no points are given
        """
        pts = list(points)
        if not pts:
            raise ValueError("Cannot build a bounding box from no points")
        xs = [p.x for p in pts]
        ys = [p.y for p in pts]
        return cls(min(xs), min(ys), max(xs), max(ys))


@dataclass
class Polyline:
    """An open chain of points."""

    points: list[Point]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def first_point(self) -> Point:
        return self.points[0]

    @property
    def last_point(self) -> Point:
        return self.points[-1]

    def lines(self) -> list[Line]:
        """Segments between consecutive points."""
        return [Line(self.points[i], self.points[i + 1]) for i in range(len(self.points) - 1)]

    def length(self) -> float:
        """Total length of the chain."""
        return sum(line.length() for line in self.lines())

    def reversed(self) -> "Polyline":
        """Return the chain walked backwards."""
        return Polyline(points=list(reversed(self.points)))

    def simplified(self, tolerance: float) -> "Polyline":
        """Douglas-Peucker simplification keeping both endpoints."""
        if len(self.points) < 3:
            return Polyline(points=list(self.points))
        line = LineString([p.to_tuple() for p in self.points])
        line = line.simplify(tolerance, preserve_topology=False)
        if line.is_empty:
            return Polyline(points=[self.first_point, self.last_point])
        return Polyline(points=[Point(round(x), round(y)) for x, y in line.coords])

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"points": [p.to_list() for p in self.points]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Polyline":
        """Deserialize from dictionary."""
        return cls(points=[Point.from_list(p) for p in data["points"]])


@dataclass
class Polygon:
    """A closed vertex ring representing a contour or a hole.

    The closing edge from the last to the first point is implicit.

    Attributes:
        points: Vertices in ring order
    """

    points: list[Point]
    _cached_area: float | None = field(default=None, repr=False, init=False, compare=False)

    def __len__(self) -> int:
        return len(self.points)

    def area(self) -> float:
        """Calculate signed area using shoelace formula.

        The sign of the area indicates winding direction:
        - Positive area: counter-clockwise winding (contour)
        - Negative area: clockwise winding (hole)

        Result is cached for efficiency.

        Returns:
            Signed area in square scaled units
        """
        if self._cached_area is not None:
            return self._cached_area

        n = len(self.points)
        if n < 3:
            self._cached_area = 0.0
            return 0.0

        area = 0.0
        for i in range(n):
            j = (i + 1) % n
            area += self.points[i].x * self.points[j].y
            area -= self.points[j].x * self.points[i].y

        self._cached_area = area / 2.0
        return self._cached_area

    def is_counter_clockwise(self) -> bool:
        """True for contours (positive area)."""
        return self.area() > 0

    @property
    def first_point(self) -> Point:
        return self.points[0]

    def reversed(self) -> "Polygon":
        """Return the same ring with opposite winding."""
        return Polygon(points=list(reversed(self.points)))

    def rotated(self, angle: float, center: Point | None = None) -> "Polygon":
        """Return the ring rotated counter-clockwise by angle (radians)."""
        return Polygon(points=[p.rotated(angle, center) for p in self.points])

    def lines(self) -> list[Line]:
        """Edges of the ring, including the closing edge."""
        n = len(self.points)
        return [Line(self.points[i], self.points[(i + 1) % n]) for i in range(n)]

    def length(self) -> float:
        """Perimeter length of the ring."""
        return sum(line.length() for line in self.lines())

    def split_at_first_point(self) -> Polyline:
        """Open the ring at its first point (first point repeated at the end)."""
        return Polyline(points=[*self.points, self.points[0]])

    def bounding_box(self) -> BoundingBox:
        """Bounding box of the ring."""
        return BoundingBox.from_points(self.points)

    def contains_point(self, point: Point) -> bool:
        """Check if point is inside the ring using ray casting.

        Winding is ignored: a hole ring contains the points it encloses.

        Args:
            point: The point to test

        Returns:
            True if point is inside, False otherwise
        """
        n = len(self.points)
        if n < 3:
            return False

        inside = False
        x, y = point.x, point.y
        j = n - 1

        for i in range(n):
            xi, yi = self.points[i].x, self.points[i].y
            xj, yj = self.points[j].x, self.points[j].y

            if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
                inside = not inside

            j = i

        return inside

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"points": [p.to_list() for p in self.points]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Polygon":
        """Deserialize from dictionary."""
        return cls(points=[Point.from_list(p) for p in data["points"]])


@dataclass
class ExPolygon:
    """One filled region: an outer contour plus the holes it encloses.

    Attributes:
        contour: Outer boundary, counter-clockwise
        holes: Hole boundaries, clockwise, strictly inside the contour
    """

    contour: Polygon
    holes: list[Polygon] = field(default_factory=list)

    def polygons(self) -> list[Polygon]:
        """Contour followed by the holes."""
        return [self.contour, *self.holes]

    def area(self) -> float:
        """Filled area (contour minus holes), always non-negative."""
        return abs(self.contour.area()) - sum(abs(hole.area()) for hole in self.holes)

    def contains_point(self, point: Point) -> bool:
        """True if point lies inside the contour and outside every hole."""
        if not self.contour.contains_point(point):
            return False
        return not any(hole.contains_point(point) for hole in self.holes)

    def rotated(self, angle: float, center: Point | None = None) -> "ExPolygon":
        """Rotate contour and holes counter-clockwise by angle (radians)."""
        return ExPolygon(
            contour=self.contour.rotated(angle, center),
            holes=[hole.rotated(angle, center) for hole in self.holes],
        )

    def bounding_box(self) -> BoundingBox:
        """Bounding box of the contour."""
        return self.contour.bounding_box()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "contour": self.contour.to_dict(),
            "holes": [hole.to_dict() for hole in self.holes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExPolygon":
        """Deserialize from dictionary."""
        return cls(
            contour=Polygon.from_dict(data["contour"]),
            holes=[Polygon.from_dict(h) for h in data.get("holes", [])],
        )
