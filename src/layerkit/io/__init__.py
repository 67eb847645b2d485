"""Layer stack I/O for layerkit.

This module handles reading sliced cross-section loops and writing the
processed region geometry. It keeps file formats out of the domain models.

Key responsibilities:
- Load layer stacks (JSON, millimetres) into scaled domain layers
- Assign flows to regions from the flow configuration
- Write perimeters, thin fills and fill surfaces back in millimetres

Key classes:
- LayerReader: Load layer stacks
- ResultWriter: Save processed layers
"""

from layerkit.io.reader import LayerReader, build_region
from layerkit.io.writer import ResultWriter, region_to_document

__all__ = [
    "LayerReader",
    "ResultWriter",
    "build_region",
    "region_to_document",
]
