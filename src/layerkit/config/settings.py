"""Configuration settings for Layerkit."""

from pathlib import Path

from pydantic import BaseModel, Field


class PrintConfig(BaseModel):
    """Print settings read by the region pipeline.

    Values are read-only for the duration of a run and are passed explicitly
    to every component that needs them.
    """

    perimeters: int = Field(
        default=3,
        ge=0,
        le=50,
        description="Number of perimeter loops per island",
    )
    thin_walls: bool = Field(
        default=True,
        description="Detect walls too narrow for a second loop and print their medial axis",
    )
    gap_fill_speed: float = Field(
        default=20.0,
        ge=0.0,
        description="Gap fill speed in mm/s (0 disables gap detection)",
    )
    fill_density: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Sparse infill density (0 = no infill)",
    )
    top_solid_layers: int = Field(
        default=3,
        ge=0,
        description="Number of solid layers below top surfaces",
    )
    bottom_solid_layers: int = Field(
        default=3,
        ge=0,
        description="Number of solid layers above bottom surfaces",
    )
    solid_infill_below_area: float = Field(
        default=70.0,
        ge=0.0,
        description="Internal regions smaller than this area (mm²) are filled solid",
    )
    external_perimeters_first: bool = Field(
        default=False,
        description="Print the outermost loop of each island first",
    )
    brim_width: float = Field(
        default=0.0,
        ge=0.0,
        description="Brim width in mm (first layer perimeters are reversed when > 0)",
    )


class FlowConfig(BaseModel):
    """Extrusion widths and spacings per purpose, in millimetres.

    Flow values are computed by an external collaborator from nozzle diameter
    and layer height; this model only carries the results.
    """

    perimeter_width: float = Field(default=0.5, gt=0.0, description="Perimeter extrusion width")
    perimeter_spacing: float = Field(default=0.45, gt=0.0, description="Perimeter spacing")
    infill_width: float = Field(default=0.5, gt=0.0, description="Sparse infill extrusion width")
    infill_spacing: float = Field(default=0.45, gt=0.0, description="Sparse infill spacing")
    solid_infill_width: float = Field(default=0.5, gt=0.0, description="Solid infill extrusion width")
    solid_infill_spacing: float = Field(default=0.45, gt=0.0, description="Solid infill spacing")
    top_infill_width: float = Field(default=0.45, gt=0.0, description="Top infill extrusion width")
    top_infill_spacing: float = Field(default=0.4, gt=0.0, description="Top infill spacing")
    first_layer_width_ratio: float | None = Field(
        default=None,
        gt=0.0,
        le=3.0,
        description="Scale all first layer widths and spacings by this ratio (None = same as other layers)",
    )


class GeometryConfig(BaseModel):
    """Tolerances and margins of the geometry engine, in millimetres."""

    resolution: float = Field(
        default=0.0125,
        ge=0.0,
        le=1.0,
        description="Simplification tolerance applied to fill boundaries",
    )
    merge_safety_offset: float = Field(
        default=0.0499,
        ge=0.0,
        le=1.0,
        description="Grow-then-shrink distance welding near-coincident slice edges",
    )
    clipper_safety_offset: float = Field(
        default=0.0001,
        ge=0.0,
        le=0.1,
        description="Clip inflation used by union-safe intersections",
    )
    external_infill_margin: float = Field(
        default=3.0,
        ge=0.0,
        le=50.0,
        description="Distance top and bottom surfaces are grown to anchor them",
    )
    bridge_angle_step: float = Field(
        default=5.0,
        gt=0.0,
        le=90.0,
        description="Angle increment of the bridge direction sweep (degrees)",
    )


class ProcessingConfig(BaseModel):
    """Configuration for layer stack processing."""

    max_workers: int | None = Field(
        default=None,
        description="Max worker processes (None = auto, 1 = run inline)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class LayerkitSettings(BaseModel):
    """Main application settings."""

    printing: PrintConfig = Field(default_factory=PrintConfig)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> LayerkitSettings:
    """Get default application settings."""
    return LayerkitSettings()
