"""Typed surfaces and their collections.

A surface is an ExPolygon tagged with the role it plays in the layer
(internal, solid, top, bottom, bridge) plus the metadata later stages attach
to it. Collections of surfaces of one pipeline stage tile the layer area with
no gaps and no overlaps.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from layerkit.domain.geometry import ExPolygon


class SurfaceType(Enum):
    """Role of a surface in its layer."""

    INTERNAL = "internal"
    INTERNAL_SOLID = "internal_solid"
    TOP = "top"
    BOTTOM = "bottom"
    INTERNAL_BRIDGE = "internal_bridge"


@dataclass
class Surface:
    """An ExPolygon tagged with a surface type.

    Attributes:
        expolygon: Region covered by this surface
        surface_type: Role of the region in its layer
        extra_perimeters: Per-surface override added to the configured perimeter count
        bridge_angle: Bridge infill direction in degrees (None = no bridge angle)
        thickness: Thickness of the solid below/above, in mm (None = unknown)
        thickness_layers: Number of layers the thickness spans
    """

    expolygon: ExPolygon
    surface_type: SurfaceType = SurfaceType.INTERNAL
    extra_perimeters: int | None = None
    bridge_angle: float | None = None
    thickness: float | None = None
    thickness_layers: int = 1

    def area(self) -> float:
        """Filled area of the surface in square scaled units."""
        return self.expolygon.area()

    def clone(self, **changes: Any) -> "Surface":
        """Copy this surface, overriding the given fields."""
        return replace(self, **changes)

    def group_key(self) -> tuple[Any, ...]:
        """Key shared by surfaces that may be merged by boolean operations."""
        return (
            self.surface_type,
            self.bridge_angle,
            self.extra_perimeters,
            self.thickness,
            self.thickness_layers,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "expolygon": self.expolygon.to_dict(),
            "type": self.surface_type.value,
            "extra_perimeters": self.extra_perimeters,
            "bridge_angle": self.bridge_angle,
            "thickness": self.thickness,
            "thickness_layers": self.thickness_layers,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Surface":
        """Deserialize from dictionary."""
        return cls(
            expolygon=ExPolygon.from_dict(data["expolygon"]),
            surface_type=SurfaceType(data["type"]),
            extra_perimeters=data.get("extra_perimeters"),
            bridge_angle=data.get("bridge_angle"),
            thickness=data.get("thickness"),
            thickness_layers=data.get("thickness_layers", 1),
        )


def filter_by_type(surfaces: list[Surface], surface_type: SurfaceType) -> list[Surface]:
    """Surfaces of the given type, in collection order."""
    return [s for s in surfaces if s.surface_type == surface_type]


def group_surfaces(surfaces: list[Surface]) -> list[list[Surface]]:
    """Group surfaces sharing type and metadata, keeping first-seen order."""
    groups: dict[tuple[Any, ...], list[Surface]] = {}
    for surface in surfaces:
        groups.setdefault(surface.group_key(), []).append(surface)
    return list(groups.values())
