"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""


from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for layer region processing.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header."""
    console.print(f"\n[bold]Layerkit[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_stack_info(path: str, layer_count: int, region_count: int, height: float) -> None:
    """Print layer stack information.

    Args:
        path: Path to the layer stack file
        layer_count: Number of layers
        region_count: Number of layer regions across all layers
        height: Top print height in mm
    """
    # Use Text to safely handle paths with special characters
    line1 = Text("  ")
    line1.append(path)
    console.print(line1)
    console.print(
        f"  {layer_count:,} layers {SYM_DOT} {region_count:,} layer regions {SYM_DOT} {height:.2f} mm"
    )


def print_layer_table(rows: list[tuple[int, float, str, int]], limit: int = 20) -> None:
    """Print a table of layer regions and their raw loop counts.

    Args:
        rows: (layer id, print_z, region name, loop count) per layer region
        limit: Maximum number of rows shown
    """
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Layer", justify="right")
    table.add_column("Z (mm)", justify="right")
    table.add_column("Region")
    table.add_column("Loops", justify="right")

    for layer_id, print_z, region, loops in rows[:limit]:
        table.add_row(str(layer_id), f"{print_z:.2f}", region, str(loops))

    console.print(table)
    if len(rows) > limit:
        console.print(f"  {SYM_DOT}{SYM_DOT}{SYM_DOT} (+{len(rows) - limit} more)")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers
        is_auto: Whether the count was auto-detected
    """
    auto_suffix = " (auto)" if is_auto else ""
    console.print(f"  {workers} workers{auto_suffix} {SYM_DOT} Ctrl+C to cancel")


def print_success(
    output_path: str,
    file_size: str,
    total_time_s: float,
    processed: int,
    perimeters: int,
    bridges: int,
    errors: int,
    avg_time_ms: float | None = None,
) -> None:
    """Print success message with summary.

    Args:
        output_path: Path to output file
        file_size: Human-readable file size string
        total_time_s: Total processing time in seconds
        processed: Number of layer regions processed
        perimeters: Total number of perimeter entities generated
        bridges: Number of bridges detected
        errors: Number of errors encountered
        avg_time_ms: Average fill stage time per layer region in milliseconds
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    line = Text("  ")
    line.append(output_path, style="bold")
    line.append(f" ({file_size})")
    console.print(line)

    error_style = "red" if errors > 0 else "green"
    console.print(
        f"  {processed} regions {SYM_DOT} {perimeters} perimeters {SYM_DOT} {bridges} bridges "
        f"{SYM_DOT} [{error_style}]{errors} errors[/{error_style}]"
    )

    if avg_time_ms is not None:
        console.print(f"  {avg_time_ms:.1f}ms avg per region")


def print_errors(errors: list[tuple[str, str]], limit: int = 10) -> None:
    """Print the regions that failed and why."""
    for label, reason in errors[:limit]:
        console.print(f"  [red]{SYM_ERR}[/red] {label}: {reason}")
    if len(errors) > limit:
        console.print(f"  {SYM_DOT}{SYM_DOT}{SYM_DOT} (+{len(errors) - limit} more)")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} Cancelling... waiting for in-progress regions")


def print_cancellation_summary(processed: int, cancelled: int) -> None:
    """Print cancellation summary.

    Args:
        processed: Number of layer regions processed before cancellation
        cancelled: Number of pending tasks that were cancelled
    """
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print(f"  {processed} regions completed {SYM_DOT} {cancelled} tasks cancelled")
    console.print("  No output file created")
