"""Layerkit - per-layer region geometry for 3D-printing slicers.

Layerkit takes the raw cross-section loops produced by slicing a mesh at one
print height and turns them into printable region geometry: reconstructed
surfaces, ordered perimeter loops, thin-wall and gap-fill paths, typed fill
surfaces and bridge infill angles.

Example:
    $ layerkit model-layers.json

This will write model-layers-regions.json with the perimeters, thin fills and
fill surfaces of every layer region.
"""

__version__ = "0.1.0"
__author__ = "Layerkit contributors"

__all__ = ["__author__", "__version__"]
