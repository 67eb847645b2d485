"""Result writer for processed layer stacks.

Coordinates are written back in millimetres.
"""

import json
from pathlib import Path
from typing import Any

from layerkit.domain import (
    ExPolygon,
    Extrusion,
    ExtrusionLoop,
    Layer,
    LayerRegion,
    Point,
    Surface,
    unscale,
)
from layerkit.exceptions import LayerSaveError


def _points(points: list[Point]) -> list[list[float]]:
    return [[unscale(p.x), unscale(p.y)] for p in points]


def _expolygon(expolygon: ExPolygon) -> dict[str, Any]:
    return {
        "contour": _points(expolygon.contour.points),
        "holes": [_points(hole.points) for hole in expolygon.holes],
    }


def _surface(surface: Surface) -> dict[str, Any]:
    return {
        "type": surface.surface_type.value,
        "bridge_angle": surface.bridge_angle,
        **_expolygon(surface.expolygon),
    }


def _extrusion(entity: Extrusion) -> dict[str, Any]:
    if isinstance(entity, ExtrusionLoop):
        return {
            "kind": "loop",
            "role": entity.role.value,
            "flow_spacing": entity.flow_spacing,
            "points": _points(entity.polygon.points),
        }
    return {
        "kind": "path",
        "role": entity.role.value,
        "flow_spacing": entity.flow_spacing,
        "height": entity.height,
        "points": _points(entity.polyline.points),
    }


def region_to_document(layerm: LayerRegion) -> dict[str, Any]:
    """Serialize the outputs of one layer region."""
    return {
        "name": layerm.region.name,
        "slices": [_surface(s) for s in layerm.slices],
        "perimeters": [_extrusion(e) for e in layerm.perimeters],
        "thin_fills": [_extrusion(e) for e in layerm.thin_fills],
        "fill_surfaces": [_surface(s) for s in layerm.fill_surfaces],
    }


class ResultWriter:
    """Writes processed layers as JSON.

    Example:
        writer = ResultWriter(Path("part-regions.json"))
        writer.write(layers)
    """

    def __init__(self, output_path: Path) -> None:
        """Initialize the result writer.

        Args:
            output_path: Path where the result will be saved
        """
        self._output_path = output_path

    def write(self, layers: list[Layer]) -> None:
        """Save processed layers.

        Raises:
            LayerSaveError: If the file cannot be written
        """
        document = {
            "layers": [
                {
                    "id": layer.id,
                    "slice_z": layer.slice_z,
                    "print_z": layer.print_z,
                    "height": layer.height,
                    "regions": [region_to_document(layerm) for layerm in layer.regions],
                }
                for layer in layers
            ]
        }

        try:
            with self._output_path.open("w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
        except OSError as e:
            raise LayerSaveError(str(self._output_path), str(e)) from e

    @staticmethod
    def get_output_path(input_path: Path) -> Path:
        """Generate the default output path.

        Converts: part-layers.json -> part-layers-regions.json

        Args:
            input_path: Input layer file path

        Returns:
            Path with -regions suffix before the extension
        """
        return input_path.parent / f"{input_path.stem}-regions{input_path.suffix}"
