"""Exception hierarchy for Layerkit."""


class LayerkitError(Exception):
    """Base exception for all Layerkit errors."""

    pass


class GeometryError(LayerkitError):
    """Polygon kernel failure on malformed input.

    Raised for self-intersecting or non-finite coordinates that the kernel
    cannot process. Degenerate but valid geometry (zero-area offsets, empty
    intersections) never raises.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Polygon kernel failed in '{operation}': {reason}")


class LayerError(LayerkitError):
    """Errors related to layer stacks and their files."""

    pass


class LayerLoadError(LayerError):
    """Error loading a layer stack file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load layers '{path}': {reason}")


class LayerSaveError(LayerError):
    """Error saving processed layers."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save layers '{path}': {reason}")


class RegionProcessingError(LayerError):
    """Error processing a specific layer region."""

    def __init__(self, layer_id: int, region_name: str, reason: str) -> None:
        self.layer_id = layer_id
        self.region_name = region_name
        self.reason = reason
        super().__init__(
            f"Error processing region '{region_name}' on layer {layer_id}: {reason}"
        )

