"""
Command-line interface for the extraction pipeline.

Usage:
    ark-extract [VALUES_PATH] [--preset NAME]
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from extraction.pipeline import ExtractionConfig, ExtractionPipeline
from infographic.utils.errors import ExtractionError
from infographic.utils.logging import LogContext

app = typer.Typer(
    name="ark-extract",
    help="Extract color and species lookup tables from the upstream values dump",
    add_completion=False,
)
console = Console()


@app.command()
def extract(
    values_path: Optional[Path] = typer.Argument(
        None,
        help="Path to values.json (defaults to VALUES_PATH)",
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        "-p",
        help="Server multiplier preset (defaults to MULTIPLIER_PRESET, 'official')",
    ),
    multipliers_path: Optional[Path] = typer.Option(
        None,
        "--multipliers",
        "-m",
        help="Path to serverMultipliers.json",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for colors.json and species-meta.json",
    ),
):
    """Build colors.json and species-meta.json."""
    config = ExtractionConfig.from_settings(
        values_path=values_path,
        multipliers_path=multipliers_path,
        output_dir=output_dir,
        preset=preset,
    )

    console.print(f"Reading: {config.values_path}")
    console.print(f"Server multipliers: {config.multipliers_path} (preset: {config.preset})")

    try:
        with LogContext(preset=config.preset, values_path=str(config.values_path)):
            result = ExtractionPipeline(config).run()
    except ExtractionError as e:
        console.print(f"[red]✗[/red] Extraction failed: {e.message}")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]![/yellow] {warning}")

    console.print(
        f"[green]✓[/green] Wrote {len(result.colors)} colors to {result.colors_path} "
        f"({result.colors_bytes / 1024:.1f} KB)"
    )
    console.print(
        f"[green]✓[/green] Wrote {len(result.species)} species to {result.species_path} "
        f"({result.species_bytes / 1024:.1f} KB)"
    )


if __name__ == "__main__":
    app()
