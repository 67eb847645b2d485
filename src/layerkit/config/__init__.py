"""Configuration management for layerkit.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults, and is passed
explicitly to every pipeline component.

Key classes:
- PrintConfig: Perimeter, infill and solid layer settings
- FlowConfig: Extrusion widths and spacings per purpose
- GeometryConfig: Tolerances and margins of the geometry engine
- ProcessingConfig: Layer stack processing settings
- LoggingConfig: Logging settings
- LayerkitSettings: Main application settings
"""

from layerkit.config.settings import (
    FlowConfig,
    GeometryConfig,
    LayerkitSettings,
    LoggingConfig,
    PrintConfig,
    ProcessingConfig,
    get_default_settings,
)

__all__ = [
    "FlowConfig",
    "GeometryConfig",
    "LayerkitSettings",
    "LoggingConfig",
    "PrintConfig",
    "ProcessingConfig",
    "get_default_settings",
]
