"""Logging utilities for Layerkit."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog


@dataclass
class ProcessingStats:
    """Statistics from processing run."""

    layer_count: int = 0
    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    perimeters_added: int = 0
    thin_fills_added: int = 0
    bridges_detected: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    region_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    was_cancelled: bool = False
    cancelled_count: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_region_time_ms(self) -> float | None:
        """Average time spent per layer region."""
        if not self.region_timings_ms:
            return None
        return sum(self.region_timings_ms) / len(self.region_timings_ms)


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Args:
        log_file: Path to log file (auto-generated if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    if log_file is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path(f"layerkit_{timestamp}.log")

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(getattr(logging, file_level.upper()))
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("layerkit")
    logger.info("Logging initialized", log_file=str(log_file), level=file_level)

    return logger


class ProcessingLogger:
    """Logger for tracking processing progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_region_start(self, layer_id: int, region_name: str) -> None:
        """Log start of layer region processing."""
        self._logger.debug("Processing region", layer=layer_id, region=region_name)

    def log_region_complete(
        self,
        layer_id: int,
        region_name: str,
        perimeters: int,
        thin_fills: int,
        duration_ms: float,
    ) -> None:
        """Log successful layer region processing."""
        self._logger.info(
            "Region processed",
            layer=layer_id,
            region=region_name,
            perimeters=perimeters,
            thin_fills=thin_fills,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.perimeters_added += perimeters
        self._stats.thin_fills_added += thin_fills

    def log_region_skipped(self, layer_id: int, region_name: str, reason: str) -> None:
        """Log skipped layer region."""
        self._logger.debug("Region skipped", layer=layer_id, region=region_name, reason=reason)
        self._stats.skipped_count += 1

    def log_region_error(
        self,
        layer_id: int,
        region_name: str,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log layer region processing error."""
        self._logger.error(
            "Region processing failed",
            layer=layer_id,
            region=region_name,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((f"{layer_id}:{region_name}", str(error)))

    def log_bridge_detected(
        self,
        layer_id: int,
        region_name: str,
        angle: float,
    ) -> None:
        """Log a detected bridge angle."""
        self._logger.debug(
            "Bridge detected",
            layer=layer_id,
            region=region_name,
            angle=round(angle, 2),
        )
        self._stats.bridges_detected += 1

    def log_surface_analysis(
        self,
        layer_id: int,
        region_name: str,
        surfaces: int,
        holes: int,
        loops: int,
    ) -> None:
        """Log surface reconstruction results."""
        self._logger.debug(
            "Surface reconstruction",
            layer=layer_id,
            region=region_name,
            surfaces=surfaces,
            holes=holes,
            loops=loops,
        )

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
