"""Layers, regions and the per-(layer, region) working set.

A Layer owns one LayerRegion per print region. A LayerRegion exclusively owns
its surface and extrusion collections; it refers to its layer through a
LayerRef value handle and to its Region (shared material/flow assignment)
without owning either, so there is no ownership cycle.
"""

from dataclasses import dataclass, field
from typing import Any

from layerkit.domain.extrusion import Extrusion, extrusion_from_dict
from layerkit.domain.flow import Flow, FlowRole
from layerkit.domain.geometry import Polygon
from layerkit.domain.surface import Surface


@dataclass(frozen=True)
class LayerRef:
    """Non-owning handle to a layer.

    Attributes:
        id: Layer index (0 = first layer)
        slice_z: Height the mesh was cut at, in mm
        print_z: Top of the printed layer, in mm
        height: Layer thickness in mm
    """

    id: int
    slice_z: float
    print_z: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slice_z": self.slice_z,
            "print_z": self.print_z,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerRef":
        return cls(
            id=data["id"],
            slice_z=data["slice_z"],
            print_z=data["print_z"],
            height=data["height"],
        )


@dataclass(frozen=True)
class Region:
    """Material/extruder assignment shared by all layers of a print region.

    Attributes:
        name: Region name
        extruder: Extruder index
        flows: Flow per purpose
        first_layer_flows: Flow overrides used on layer 0
    """

    name: str
    flows: dict[FlowRole, Flow]
    extruder: int = 0
    first_layer_flows: dict[FlowRole, Flow] = field(default_factory=dict)

    def flow(self, role: FlowRole, first_layer: bool = False) -> Flow:
        """Resolve the flow of a purpose, preferring first-layer overrides on layer 0."""
        if first_layer and role in self.first_layer_flows:
            return self.first_layer_flows[role]
        return self.flows[role]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "extruder": self.extruder,
            "flows": {role.value: f.to_dict() for role, f in self.flows.items()},
            "first_layer_flows": {
                role.value: f.to_dict() for role, f in self.first_layer_flows.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Region":
        return cls(
            name=data["name"],
            extruder=data.get("extruder", 0),
            flows={FlowRole(k): Flow.from_dict(v) for k, v in data["flows"].items()},
            first_layer_flows={
                FlowRole(k): Flow.from_dict(v)
                for k, v in data.get("first_layer_flows", {}).items()
            },
        )


@dataclass
class LayerRegion:
    """Working set of one region on one layer.

    Created once per (layer, region) pair, mutated in place by the pipeline
    stages and consumed by downstream path ordering.

    Attributes:
        layer: Handle of the owning layer
        region: Region providing flows
        slices: Reconstructed surfaces of the layer cross-section
        fill_surfaces: Typed surfaces left for infill
        perimeters: Ordered perimeter loops and thin-wall paths
        thin_fills: Gap fill paths
        fills: Infill paths (filled by the downstream infill stage)
    """

    layer: LayerRef
    region: Region
    slices: list[Surface] = field(default_factory=list)
    fill_surfaces: list[Surface] = field(default_factory=list)
    perimeters: list[Extrusion] = field(default_factory=list)
    thin_fills: list[Extrusion] = field(default_factory=list)
    fills: list[Extrusion] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.layer.id

    @property
    def slice_z(self) -> float:
        return self.layer.slice_z

    @property
    def print_z(self) -> float:
        return self.layer.print_z

    @property
    def height(self) -> float:
        return self.layer.height

    def flow(self, role: FlowRole) -> Flow:
        """Flow of a purpose on this layer."""
        return self.region.flow(role, first_layer=self.layer.id == 0)

    @property
    def perimeter_flow(self) -> Flow:
        return self.flow(FlowRole.PERIMETER)

    @property
    def infill_flow(self) -> Flow:
        return self.flow(FlowRole.INFILL)

    @property
    def solid_infill_flow(self) -> Flow:
        return self.flow(FlowRole.SOLID_INFILL)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "layer": self.layer.to_dict(),
            "region": self.region.to_dict(),
            "slices": [s.to_dict() for s in self.slices],
            "fill_surfaces": [s.to_dict() for s in self.fill_surfaces],
            "perimeters": [e.to_dict() for e in self.perimeters],
            "thin_fills": [e.to_dict() for e in self.thin_fills],
            "fills": [e.to_dict() for e in self.fills],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerRegion":
        """Deserialize from dictionary."""
        return cls(
            layer=LayerRef.from_dict(data["layer"]),
            region=Region.from_dict(data["region"]),
            slices=[Surface.from_dict(s) for s in data.get("slices", [])],
            fill_surfaces=[Surface.from_dict(s) for s in data.get("fill_surfaces", [])],
            perimeters=[extrusion_from_dict(e) for e in data.get("perimeters", [])],
            thin_fills=[extrusion_from_dict(e) for e in data.get("thin_fills", [])],
            fills=[extrusion_from_dict(e) for e in data.get("fills", [])],
        )


@dataclass
class Layer:
    """One print height and its regions.

    Attributes:
        id: Layer index
        slice_z: Height the mesh was cut at, in mm
        print_z: Top of the printed layer, in mm
        height: Layer thickness in mm
        regions: Layer regions in region order
        raw_loops: Raw cross-section loops per region name, consumed by
            surface reconstruction
    """

    id: int
    slice_z: float
    print_z: float
    height: float
    regions: list[LayerRegion] = field(default_factory=list)
    raw_loops: dict[str, list[Polygon]] = field(default_factory=dict)

    def ref(self) -> LayerRef:
        """Value handle of this layer for its regions."""
        return LayerRef(id=self.id, slice_z=self.slice_z, print_z=self.print_z, height=self.height)

    def add_region(self, region: Region) -> LayerRegion:
        """Create and attach the working set of a region on this layer."""
        layerm = LayerRegion(layer=self.ref(), region=region)
        self.regions.append(layerm)
        return layerm

    def get_region(self, name: str) -> LayerRegion | None:
        """Find the layer region of a region by name."""
        for layerm in self.regions:
            if layerm.region.name == name:
                return layerm
        return None

    @property
    def slices(self) -> list[Surface]:
        """Reconstructed surfaces of all regions on this layer."""
        return [surface for layerm in self.regions for surface in layerm.slices]
