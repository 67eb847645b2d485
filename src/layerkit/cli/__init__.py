"""Command-line interface for layerkit.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Progress bars for layer region processing
- Verbose/quiet output modes
- Dry-run mode for inspecting a layer stack
- Detailed error reporting
"""

from layerkit.cli.app import cli, main

__all__ = ["cli", "main"]
