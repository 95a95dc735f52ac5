"""CLI entry point for the preview renderer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from preview_images.errors import PipelineError
from preview_images.models.config import PreviewConfig
from preview_images.pipeline import run_preview_images

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


@click.command()
@click.argument("directory", default=".", type=click.Path(file_okay=False, path_type=Path))
@click.option("--config", "-c", default=None, help="JSON config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(directory: Path, config: str | None, verbose: bool) -> None:
    """Render every HTML file under DIRECTORY to a preview image."""
    setup_logging(verbose)

    try:
        cfg = PreviewConfig.load(config) if config else PreviewConfig()
    except (FileNotFoundError, PipelineError) as e:
        err_console.print(f"[red]{e}[/red]")
        sys.exit(1)

    try:
        results = run_preview_images(directory, cfg)
    except PipelineError as e:
        err_console.print(f"[red]Preview generation failed:[/red] {e}")
        sys.exit(1)

    if not results:
        console.print("[yellow]No matching files found[/yellow]")
        return

    table = Table(title="Preview Images")
    table.add_column("File", style="bold")
    table.add_column("Status")
    table.add_column("Output")
    for r in results:
        if r.ok:
            table.add_row(r.file, "[green]ok[/green]", r.output_path or "[dim]not written[/dim]")
        else:
            table.add_row(r.file, f"[red]{r.stage}[/red]", r.error or "")
    console.print(table)

    failed = sum(1 for r in results if not r.ok)
    if failed:
        err_console.print(f"[red]{failed} of {len(results)} files failed to render[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
