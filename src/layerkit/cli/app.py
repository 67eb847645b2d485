"""CLI application entry point for layerkit.

This module provides the main CLI interface using Typer.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from layerkit import __version__
from layerkit.cli.output import (
    SYM_OK,
    console,
    create_progress,
    print_cancellation_notice,
    print_cancellation_summary,
    print_error,
    print_errors,
    print_header,
    print_layer_table,
    print_processing_info,
    print_stack_info,
    print_step,
    print_success,
)
from layerkit.config import LayerkitSettings, LoggingConfig, PrintConfig, ProcessingConfig
from layerkit.core import LayerProcessor
from layerkit.exceptions import LayerkitError, LayerLoadError, LayerSaveError
from layerkit.io import LayerReader, ResultWriter

# Create the Typer app
app = typer.Typer(
    name="layerkit",
    help="Generate perimeters, gap fill and typed fill surfaces from sliced layer loops.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Layerkit[/bold blue] v{__version__}")
        raise typer.Exit()


@app.command()
def process(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Path to input layer stack (JSON)",
            show_default=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-regions.json)",
        ),
    ] = None,
    perimeters: Annotated[
        int,
        typer.Option(
            "--perimeters",
            "-p",
            help="Number of perimeter loops per island",
            min=0,
            max=50,
        ),
    ] = 3,
    fill_density: Annotated[
        float,
        typer.Option(
            "--fill-density",
            "-d",
            help="Sparse infill density (0-1)",
            min=0.0,
            max=1.0,
        ),
    ] = 0.4,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto, 1 = no worker processes)",
            min=1,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Load the layer stack and show what would be processed",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Generate region geometry for every layer of a sliced layer stack.

    Reads raw cross-section loops per layer and region, then writes the
    perimeters, thin walls, gap fill and typed fill surfaces of each
    layer region.

    Example:
        layerkit part-layers.json

    This will create part-layers-regions.json next to the input.
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    if not input_path.exists():
        print_error(
            f"Input file not found: {input_path}",
            details=f"The file '{input_path}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not input_path.is_file():
        print_error(
            f"Input path is not a file: {input_path}",
            details="Please provide a path to a JSON layer stack.",
        )
        raise typer.Exit(code=1)

    if not quiet:
        print_header(__version__)

    settings = LayerkitSettings(
        printing=PrintConfig(
            perimeters=perimeters,
            fill_density=fill_density,
        ),
        processing=ProcessingConfig(
            max_workers=workers,
        ),
        logging=LoggingConfig(
            log_file=log_file,
            log_level="DEBUG" if verbose else log_level,
        ),
    )

    try:
        if not quiet:
            print_step("Loading layers")

        reader = LayerReader(input_path, settings.flow)
        reader.load()

        if not quiet:
            top = reader.layers[-1].print_z if reader.layers else 0.0
            print_stack_info(
                path=str(input_path),
                layer_count=reader.layer_count,
                region_count=reader.region_count,
                height=top,
            )

        if dry_run:
            _handle_dry_run(reader, settings, quiet, verbose)
            raise typer.Exit(code=0)

        if reader.region_count == 0:
            if not quiet:
                console.print("\nNo layer regions found. Nothing to process.")
            raise typer.Exit(code=0)

        if not quiet:
            actual_workers = workers if workers else os.cpu_count() or 1
            print_step("Processing")
            print_processing_info(actual_workers, is_auto=(workers is None))

        actual_output_path = output or ResultWriter.get_output_path(input_path)

        processor = LayerProcessor(settings, quiet=quiet)
        stats = None

        try:
            if not quiet:
                with create_progress() as progress:
                    task_id = progress.add_task("Processing layer regions", total=None)

                    def update_progress(completed: int, total: int, *_: object) -> None:
                        progress.update(task_id, completed=completed, total=total)

                    stats = processor.process(
                        input_path=input_path,
                        output_path=actual_output_path,
                        max_workers=workers,
                        progress_callback=update_progress,
                    )
            else:
                stats = processor.process(
                    input_path=input_path,
                    output_path=actual_output_path,
                    max_workers=workers,
                )
        except KeyboardInterrupt:
            if not quiet:
                stats = processor.processing_logger.stats
                print_cancellation_notice()
                print_cancellation_summary(
                    processed=stats.processed_count,
                    cancelled=stats.cancelled_count,
                )
            raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

        if not quiet:
            print_success(
                output_path=str(actual_output_path),
                file_size=_format_file_size(actual_output_path),
                total_time_s=stats.duration_seconds,
                processed=stats.processed_count,
                perimeters=stats.perimeters_added,
                bridges=stats.bridges_detected,
                errors=stats.error_count,
                avg_time_ms=stats.avg_region_time_ms,
            )
            if verbose and stats.errors:
                print_errors(stats.errors)

    except LayerLoadError as e:
        print_error(f"Could not load layers: {e.reason}")
        raise typer.Exit(code=1)
    except LayerSaveError as e:
        print_error(f"Could not save result: {e.reason}")
        raise typer.Exit(code=1)
    except LayerkitError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


def _handle_dry_run(
    reader: LayerReader, settings: LayerkitSettings, quiet: bool, verbose: bool
) -> None:
    """Handle --dry-run mode.

    Args:
        reader: Loaded layer reader
        settings: Layerkit settings
        quiet: Suppress output
        verbose: Show the per-region table
    """
    if quiet:
        return

    rows = [
        (layer.id, layer.print_z, layerm.region.name, len(layer.raw_loops.get(layerm.region.name, [])))
        for layer in reader.layers
        for layerm in layer.regions
    ]

    console.print("\n[bold]Analysis[/bold]\n")
    console.print(f"  Layer regions         {len(rows)}")
    console.print(f"  Raw loops             {sum(row[3] for row in rows)}")
    console.print(f"  Perimeters            {settings.printing.perimeters}")
    console.print(f"  Fill density          {settings.printing.fill_density:.0%}")

    if verbose and rows:
        console.print("\n[bold]Layer regions[/bold]")
        print_layer_table(rows)

    console.print(f"\n[bold green]{SYM_OK} Dry run complete[/bold green] – nothing written")


def _format_file_size(path: Path) -> str:
    """Format file size in human-readable form.

    Args:
        path: Path to file

    Returns:
        Human-readable file size (e.g., "428 KB")
    """
    try:
        size_bytes = path.stat().st_size
    except OSError:
        return "unknown"
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
