"""Extrusion flow values.

Widths and spacings are computed by an external collaborator; the engine only
queries them, in millimetres or in scaled units.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from layerkit.domain.geometry import scale


class FlowRole(Enum):
    """Purpose a flow is used for."""

    PERIMETER = "perimeter"
    INFILL = "infill"
    SOLID_INFILL = "solid_infill"
    TOP_INFILL = "top_infill"


@dataclass(frozen=True)
class Flow:
    """Extrusion width and spacing of one purpose.

    Attributes:
        width: Extrusion width in mm
        spacing: Distance between adjacent extrusions in mm
    """

    width: float
    spacing: float

    @property
    def scaled_width(self) -> float:
        return scale(self.width)

    @property
    def scaled_spacing(self) -> float:
        return scale(self.spacing)

    def with_width(self, width: float) -> "Flow":
        """Derive a trial flow of another width, keeping the spacing/width ratio."""
        return Flow(width=width, spacing=width * self.spacing / self.width)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {"width": self.width, "spacing": self.spacing}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Flow":
        """Deserialize from dictionary."""
        return cls(width=data["width"], spacing=data["spacing"])
