"""Layer stack reader.

This module provides the LayerReader class for loading sliced cross-section
loops from JSON and converting them into domain layers.

Input format (coordinates in millimetres)::

    {
      "layers": [
        {
          "id": 0, "slice_z": 0.1, "print_z": 0.2, "height": 0.2,
          "regions": [
            {"name": "default", "loops": [[[0, 0], [20, 0], [20, 20], [0, 20]]]}
          ]
        }
      ]
    }

Loop winding is kept: counter-clockwise loops are contours, clockwise loops
are holes.
"""

import json
from pathlib import Path
from typing import Any

from layerkit.config import FlowConfig
from layerkit.domain import Flow, FlowRole, Layer, Point, Polygon, Region, scale
from layerkit.exceptions import LayerLoadError


def build_region(name: str, flow: FlowConfig, extruder: int = 0) -> Region:
    """Create a region whose flows come from the flow configuration.

    Args:
        name: Region name
        flow: Widths and spacings per purpose
        extruder: Extruder index

    Returns:
        Region with one flow per purpose, plus first layer overrides when a
        first layer width ratio is configured
    """
    flows = {
        FlowRole.PERIMETER: Flow(flow.perimeter_width, flow.perimeter_spacing),
        FlowRole.INFILL: Flow(flow.infill_width, flow.infill_spacing),
        FlowRole.SOLID_INFILL: Flow(flow.solid_infill_width, flow.solid_infill_spacing),
        FlowRole.TOP_INFILL: Flow(flow.top_infill_width, flow.top_infill_spacing),
    }

    first_layer_flows: dict[FlowRole, Flow] = {}
    if flow.first_layer_width_ratio is not None:
        ratio = flow.first_layer_width_ratio
        first_layer_flows = {
            role: Flow(f.width * ratio, f.spacing * ratio) for role, f in flows.items()
        }

    return Region(name=name, flows=flows, extruder=extruder, first_layer_flows=first_layer_flows)


def _parse_loop(data: list[list[float]]) -> Polygon:
    return Polygon(points=[Point(round(scale(x)), round(scale(y))) for x, y in data])


class LayerReader:
    """Loads a layer stack file and builds domain layers.

    Example:
        reader = LayerReader(Path("part-layers.json"))
        reader.load()
        for layer in reader.layers:
            print(layer.id, len(layer.regions))
    """

    def __init__(self, path: Path, flow: FlowConfig | None = None) -> None:
        """Initialize the layer reader.

        Args:
            path: Path to the JSON layer stack file
            flow: Flow configuration assigned to every region
        """
        self._path = path
        self._flow = flow or FlowConfig()
        self._layers: list[Layer] | None = None

    def load(self) -> None:
        """Load and parse the layer stack.

        Raises:
            FileNotFoundError: If the file does not exist
            LayerLoadError: If the file is not valid JSON or misses fields
        """
        if not self._path.exists():
            raise FileNotFoundError(f"Layer file not found: {self._path}")

        try:
            with self._path.open(encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise LayerLoadError(str(self._path), f"invalid JSON: {e}") from e

        self._layers = self.parse(document)

    def parse(self, document: dict[str, Any]) -> list[Layer]:
        """Build layers from a decoded document.

        Raises:
            LayerLoadError: If required fields are missing or malformed
        """
        regions: dict[str, Region] = {}
        layers: list[Layer] = []

        try:
            for layer_data in document["layers"]:
                layer = Layer(
                    id=int(layer_data["id"]),
                    slice_z=float(layer_data["slice_z"]),
                    print_z=float(layer_data["print_z"]),
                    height=float(layer_data["height"]),
                )
                for region_data in layer_data.get("regions", []):
                    name = str(region_data["name"])
                    if name not in regions:
                        regions[name] = build_region(name, self._flow, region_data.get("extruder", 0))
                    layer.add_region(regions[name])
                    layer.raw_loops[name] = [_parse_loop(loop) for loop in region_data.get("loops", [])]
                layers.append(layer)
        except (KeyError, TypeError, ValueError) as e:
            raise LayerLoadError(str(self._path), f"malformed layer data: {e!r}") from e

        layers.sort(key=lambda layer: layer.id)
        return layers

    @property
    def layers(self) -> list[Layer]:
        """Return the loaded layers, ordered by id.

        Raises:
            RuntimeError: If the file has not been loaded yet
        """
        if self._layers is None:
            raise RuntimeError("Layers not loaded. Call load() first.")
        return self._layers

    @property
    def layer_count(self) -> int:
        """Return the number of loaded layers."""
        return len(self.layers)

    @property
    def region_count(self) -> int:
        """Return the number of layer regions across all layers."""
        return sum(len(layer.regions) for layer in self.layers)
