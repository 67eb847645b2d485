"""Parallel processing orchestration for the region pipeline.

This module coordinates the full per-layer workflow with parallel processing
of individual layer regions using ProcessPoolExecutor.

A layer stack is processed in three waves:
1. Perimeters: surface reconstruction, perimeters and gap fill of every
   layer region (parallel, no cross-layer reads)
2. Surface types: bottom/top/internal detection against neighbour layers
3. Fill: fill surface classification and external surface growth with
   bridge detection against the layer below (parallel)

Bridge detection on layer N reads the slices of layer N-1, which are final
once the first wave has completed.

Key components:
- process_layer_region: Top-level picklable function for parallel execution
- LayerProcessor: Main orchestrator class for layer stack processing
"""

import time
import traceback
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any

from layerkit.config import GeometryConfig, LayerkitSettings, PrintConfig
from layerkit.core.classifier import FillSurfaceClassifier
from layerkit.core.clipper import to_polygons, union_ex
from layerkit.core.external import ExternalSurfaceProcessor
from layerkit.core.perimeters import PerimeterGenerator
from layerkit.core.surfaces import SurfaceBuilder, SurfaceTypeDetector
from layerkit.domain import Layer, LayerRegion, Polygon, Surface, SurfaceType
from layerkit.exceptions import RegionProcessingError
from layerkit.io import LayerReader, ResultWriter
from layerkit.utils import ProcessingLogger, ProcessingStats, configure_logging

STAGE_PERIMETERS = "perimeters"
STAGE_FILL = "fill"


def process_layer_region(
    stage: str,
    region_dict: dict[str, Any],
    config_dict: dict[str, Any],
    loops: list[dict[str, Any]] | None = None,
    lower_slices: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Run one pipeline stage on a single layer region.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Deserializes the layer region, runs the stage and returns the result.

    Args:
        stage: ``"perimeters"`` (reconstruction, perimeters, gap fill) or
            ``"fill"`` (classification, external surfaces, bridges)
        region_dict: Serialized layer region (from LayerRegion.to_dict())
        config_dict: Serialized settings (printing, geometry)
        loops: Serialized raw loops, for the perimeters stage
        lower_slices: Serialized slices of the layer below, for the fill stage
            (None on the first layer)

    Returns:
        Dictionary containing either:
        - Success: {"region": region_dict, "perimeters": int, "thin_fills": int,
          "loops": int, "holes": int, "bridge_angles": list[float], "duration_ms": float}
        - Error: {"error": str, "layer_id": int, "region_name": str,
          "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        layerm = LayerRegion.from_dict(region_dict)
        printing = PrintConfig(**config_dict["printing"])
        geometry = GeometryConfig(**config_dict["geometry"])

        raw_loops = [Polygon.from_dict(p) for p in loops or []]
        bridge_angles: list[float] = []

        if stage == STAGE_PERIMETERS:
            SurfaceBuilder(geometry).make_surfaces(layerm, raw_loops)
            PerimeterGenerator(printing, geometry).make_perimeters(layerm)
        elif stage == STAGE_FILL:
            lower = (
                [Surface.from_dict(s) for s in lower_slices] if lower_slices is not None else None
            )
            FillSurfaceClassifier(printing).prepare_fill_surfaces(layerm)
            ExternalSurfaceProcessor(printing, geometry).process_external_surfaces(layerm, lower)
            bridge_angles = sorted(
                {
                    s.bridge_angle
                    for s in layerm.fill_surfaces
                    if s.surface_type == SurfaceType.BOTTOM and s.bridge_angle is not None
                }
            )
        else:
            raise ValueError(f"Unknown stage: {stage}")

        duration_ms = (time.time() - start_time) * 1000
        return {
            "region": layerm.to_dict(),
            "perimeters": len(layerm.perimeters),
            "thin_fills": len(layerm.thin_fills),
            "loops": len(raw_loops),
            "holes": sum(len(s.expolygon.holes) for s in layerm.slices),
            "bridge_angles": bridge_angles,
            "duration_ms": duration_ms,
        }

    except Exception as e:
        # Capture full traceback for debugging
        duration_ms = (time.time() - start_time) * 1000
        tb = traceback.format_exc()
        return {
            "error": str(e),
            "layer_id": region_dict.get("layer", {}).get("id", -1),
            "region_name": region_dict.get("region", {}).get("name", "unknown"),
            "traceback": tb,
            "duration_ms": duration_ms,
        }


def merged_slices(layer: Layer) -> list[Surface]:
    """Slices of all regions of a layer merged into untyped surfaces."""
    polygons = to_polygons(s.expolygon for s in layer.slices)
    return [Surface(expolygon=e) for e in union_ex(polygons)]


class LayerProcessor:
    """Orchestrates parallel layer stack processing.

    Manages the complete workflow:
    1. Load the layer stack
    2. Run the perimeters wave on every layer region
    3. Detect surface types against neighbour layers
    4. Run the fill wave on every layer region
    5. Save the processed layers

    Example:
        settings = LayerkitSettings()
        processor = LayerProcessor(settings)
        stats = processor.process(
            input_path=Path("part-layers.json"),
            output_path=Path("part-regions.json"),
            max_workers=4
        )
    """

    def __init__(self, config: LayerkitSettings, quiet: bool = False) -> None:
        """Initialize layer processor with configuration.

        Args:
            config: Layerkit settings
            quiet: Suppress console logging
        """
        self.config = config
        self.logger = configure_logging(
            log_file=config.logging.log_file,
            console_level=config.logging.log_level,
            file_level=config.logging.file_log_level,
            quiet=quiet,
        )
        self.processing_logger = ProcessingLogger(self.logger)

    def process(
        self,
        input_path: Path,
        output_path: Path | None = None,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int, str, bool], None] | None = None,
    ) -> ProcessingStats:
        """Process a layer stack file.

        Args:
            input_path: Path to the input layer stack (JSON)
            output_path: Path for the result (auto-generated if None)
            max_workers: Maximum worker processes (None = config default)
            progress_callback: Optional callback(completed, total, label, success)
                for progress updates

        Returns:
            ProcessingStats with counts, timing, and error details

        Raises:
            FileNotFoundError: If the input file does not exist
            LayerLoadError: If the input file cannot be parsed
            LayerSaveError: If the result cannot be written
            KeyboardInterrupt: If processing is cancelled by user
        """
        if output_path is None:
            output_path = ResultWriter.get_output_path(input_path)

        self.logger.info("Starting layer processing", input=str(input_path), output=str(output_path))

        reader = LayerReader(input_path, self.config.flow)
        reader.load()
        self.logger.info(
            "Layers loaded", layer_count=reader.layer_count, region_count=reader.region_count
        )

        stats = self.process_layers(reader.layers, max_workers, progress_callback)

        ResultWriter(output_path).write(reader.layers)
        self.logger.info("Result saved", output=str(output_path))
        return stats

    def process_layers(
        self,
        layers: list[Layer],
        max_workers: int | None = None,
        progress_callback: Callable[[int, int, str, bool], None] | None = None,
    ) -> ProcessingStats:
        """Run the full pipeline on loaded layers, updating them in place.

        Args:
            layers: Layers ordered by id, with raw loops per region
            max_workers: Maximum worker processes (1 = run inline)
            progress_callback: Optional callback(completed, total, label, success)

        Returns:
            ProcessingStats with counts, timing, and error details
        """
        stats = self.processing_logger.stats
        stats.start_time = time.time()
        stats.layer_count = len(layers)

        if max_workers is None:
            max_workers = self.config.processing.max_workers

        config_dict = {
            "printing": self.config.printing.model_dump(),
            "geometry": self.config.geometry.model_dump(),
        }
        failed: set[tuple[int, str]] = set()
        total = 2 * sum(len(layer.regions) for layer in layers)
        progress = _Progress(total, progress_callback)

        # Wave 1: perimeters
        tasks = {
            (layer.id, layerm.region.name): (
                STAGE_PERIMETERS,
                layerm.to_dict(),
                config_dict,
                [p.to_dict() for p in layer.raw_loops.get(layerm.region.name, [])],
                None,
            )
            for layer in layers
            for layerm in layer.regions
        }
        self._run_wave(tasks, layers, max_workers, failed, progress)

        # Wave 2: surface types
        layer_slices = [merged_slices(layer) for layer in layers]
        detector = SurfaceTypeDetector()
        for index, layer in enumerate(layers):
            lower = layer_slices[index - 1] if index > 0 else None
            upper = layer_slices[index + 1] if index + 1 < len(layers) else None
            for layerm in layer.regions:
                if (layer.id, layerm.region.name) not in failed:
                    detector.detect_surface_types(layerm, lower, upper)

        # Wave 3: fill surfaces and bridges
        tasks = {}
        for index, layer in enumerate(layers):
            lower_dicts = (
                [s.to_dict() for s in layer_slices[index - 1]] if index > 0 else None
            )
            for layerm in layer.regions:
                key = (layer.id, layerm.region.name)
                if key in failed:
                    self.processing_logger.log_region_skipped(
                        layer.id, layerm.region.name, "perimeters stage failed"
                    )
                    progress.advance(f"{layer.id}:{layerm.region.name}", False)
                    continue
                tasks[key] = (STAGE_FILL, layerm.to_dict(), config_dict, None, lower_dicts)
        self._run_wave(tasks, layers, max_workers, failed, progress)

        stats.end_time = time.time()
        self.logger.info(
            "Processing complete",
            processed=stats.processed_count,
            skipped=stats.skipped_count,
            errors=stats.error_count,
            perimeters=stats.perimeters_added,
            bridges=stats.bridges_detected,
            duration_seconds=round(stats.duration_seconds, 2),
        )
        return stats

    def _run_wave(
        self,
        tasks: dict[tuple[int, str], tuple[Any, ...]],
        layers: list[Layer],
        max_workers: int | None,
        failed: set[tuple[int, str]],
        progress: "_Progress",
    ) -> None:
        """Run one wave of tasks, inline or in worker processes."""
        if not tasks:
            return

        by_id = {layer.id: layer for layer in layers}

        if max_workers == 1:
            for key, args in tasks.items():
                self.processing_logger.log_region_start(*key)
                result = process_layer_region(*args)
                self._apply_result(key, args[0], result, by_id, failed, progress)
            return

        self.logger.info("Starting parallel wave", stage=next(iter(tasks.values()))[0], region_count=len(tasks))
        pending_futures: dict = {}

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            for key, args in tasks.items():
                future = executor.submit(process_layer_region, *args)
                pending_futures[future] = (key, args[0])

            try:
                for future in as_completed(list(pending_futures)):
                    key, stage = pending_futures.pop(future)
                    try:
                        result = future.result()
                    except Exception as e:
                        # Executor-level error
                        result = {
                            "error": str(e),
                            "layer_id": key[0],
                            "region_name": key[1],
                            "traceback": traceback.format_exc(),
                        }
                    self._apply_result(key, stage, result, by_id, failed, progress)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                for f in pending_futures:
                    f.cancel()

                stats = self.processing_logger.stats
                stats.was_cancelled = True
                stats.cancelled_count = len(pending_futures)

                executor.shutdown(wait=True, cancel_futures=True)
                raise

    def _apply_result(
        self,
        key: tuple[int, str],
        stage: str,
        result: dict[str, Any],
        by_id: dict[int, Layer],
        failed: set[tuple[int, str]],
        progress: "_Progress",
    ) -> None:
        """Store a worker result in its layer and update statistics."""
        layer_id, region_name = key
        label = f"{layer_id}:{region_name}"

        if "error" in result:
            self.processing_logger.log_region_error(
                layer_id=layer_id,
                region_name=region_name,
                error=RegionProcessingError(layer_id, region_name, result["error"]),
                traceback=result.get("traceback"),
            )
            failed.add(key)
            progress.advance(label, False)
            return

        layer = by_id[layer_id]
        processed = LayerRegion.from_dict(result["region"])
        for i, layerm in enumerate(layer.regions):
            if layerm.region.name == region_name:
                layer.regions[i] = processed

        if stage == STAGE_PERIMETERS:
            self.processing_logger.log_surface_analysis(
                layer_id=layer_id,
                region_name=region_name,
                surfaces=len(processed.slices),
                holes=result["holes"],
                loops=result["loops"],
            )
        else:
            for angle in result["bridge_angles"]:
                self.processing_logger.log_bridge_detected(layer_id, region_name, angle)
            self.processing_logger.log_region_complete(
                layer_id=layer_id,
                region_name=region_name,
                perimeters=result["perimeters"],
                thin_fills=result["thin_fills"],
                duration_ms=result["duration_ms"],
            )
            self.processing_logger.stats.region_timings_ms.append(result["duration_ms"])

        progress.advance(label, True)


class _Progress:
    """Counts completed tasks across waves and reports them."""

    def __init__(self, total: int, callback: Callable[[int, int, str, bool], None] | None) -> None:
        self.total = total
        self.completed = 0
        self.callback = callback

    def advance(self, label: str, success: bool) -> None:
        self.completed += 1
        if self.callback is not None:
            self.callback(self.completed, self.total, label, success)
