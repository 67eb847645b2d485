"""Extrusion entities emitted by the region pipeline.

Perimeters and fills leave the engine as extrusion paths (open polylines) or
extrusion loops (closed polygons), each tagged with a role and the flow
spacing it was generated for. Loops keep their orientation: contours are
counter-clockwise, holes clockwise, so that downstream consumers can compute
correct inward moves.

The medial axis primitive yields a tagged variant (MedialAxisLoop or
MedialAxisPath) that consumers pattern match on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from layerkit.domain.geometry import Point, Polygon, Polyline


class ExtrusionRole(Enum):
    """Semantic tag of an extrusion."""

    PERIMETER = "perimeter"
    EXTERNAL_PERIMETER = "external_perimeter"
    CONTOUR_INTERNAL_PERIMETER = "contour_internal_perimeter"
    GAP_FILL = "gap_fill"
    SOLID_FILL = "solid_fill"


@dataclass
class ExtrusionPath:
    """An open extrusion following a polyline.

    Attributes:
        polyline: Path geometry
        role: Extrusion role
        flow_spacing: Spacing of the flow used, in mm
        height: Layer height the path is printed at (None = layer default)
    """

    polyline: Polyline
    role: ExtrusionRole
    flow_spacing: float
    height: float | None = None

    @property
    def first_point(self) -> Point:
        return self.polyline.first_point

    @property
    def last_point(self) -> Point:
        return self.polyline.last_point

    def length(self) -> float:
        return self.polyline.length()

    def reversed(self) -> "ExtrusionPath":
        """Same path walked backwards."""
        return ExtrusionPath(
            polyline=self.polyline.reversed(),
            role=self.role,
            flow_spacing=self.flow_spacing,
            height=self.height,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "kind": "path",
            "polyline": self.polyline.to_dict(),
            "role": self.role.value,
            "flow_spacing": self.flow_spacing,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtrusionPath":
        """Deserialize from dictionary."""
        return cls(
            polyline=Polyline.from_dict(data["polyline"]),
            role=ExtrusionRole(data["role"]),
            flow_spacing=data["flow_spacing"],
            height=data.get("height"),
        )


@dataclass
class ExtrusionLoop:
    """A closed extrusion following a polygon.

    Attributes:
        polygon: Loop geometry; counter-clockwise for contours, clockwise for holes
        role: Extrusion role
        flow_spacing: Spacing of the flow used, in mm
    """

    polygon: Polygon
    role: ExtrusionRole
    flow_spacing: float

    @property
    def is_hole(self) -> bool:
        return not self.polygon.is_counter_clockwise()

    @property
    def first_point(self) -> Point:
        return self.polygon.first_point

    @property
    def last_point(self) -> Point:
        return self.polygon.first_point

    def length(self) -> float:
        return self.polygon.length()

    def split_at_first_point(self) -> ExtrusionPath:
        """Open the loop into a path starting and ending at its first point."""
        return ExtrusionPath(
            polyline=self.polygon.split_at_first_point(),
            role=self.role,
            flow_spacing=self.flow_spacing,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "kind": "loop",
            "polygon": self.polygon.to_dict(),
            "role": self.role.value,
            "flow_spacing": self.flow_spacing,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtrusionLoop":
        """Deserialize from dictionary."""
        return cls(
            polygon=Polygon.from_dict(data["polygon"]),
            role=ExtrusionRole(data["role"]),
            flow_spacing=data["flow_spacing"],
        )


Extrusion = ExtrusionPath | ExtrusionLoop


def extrusion_from_dict(data: dict[str, Any]) -> Extrusion:
    """Deserialize either extrusion kind from its dictionary."""
    if data["kind"] == "loop":
        return ExtrusionLoop.from_dict(data)
    return ExtrusionPath.from_dict(data)


@dataclass
class MedialAxisLoop:
    """A medial axis branch that closes on itself."""

    polygon: Polygon

    def length(self) -> float:
        return self.polygon.length()


@dataclass
class MedialAxisPath:
    """An open medial axis branch."""

    polyline: Polyline

    def length(self) -> float:
        return self.polyline.length()


MedialAxis = MedialAxisLoop | MedialAxisPath
