"""
Command-line interface for the infographic service.

This module provides the entry point for running the HTTP service and for
inspecting the generated lookup tables.
"""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from infographic.config import get_settings
from infographic.tables import ColorLookup, SpeciesStore
from infographic.utils.errors import DataTableError
from infographic.utils.logging import setup_logging

app = typer.Typer(
    name="ark-infographic",
    help="ARK creature infographic service",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (defaults to PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP service."""
    settings = get_settings()
    setup_logging()
    uvicorn.run(
        "infographic.api:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def tables(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory holding colors.json and species-meta.json",
    ),
):
    """Load the generated tables and print a summary."""
    settings = get_settings()
    data_dir = data_dir or Path(settings.data_dir)

    colors = ColorLookup(data_dir / "colors.json")
    species = SpeciesStore(data_dir / "species-meta.json")
    try:
        colors.initialize()
        species.initialize()
    except DataTableError as e:
        console.print(f"[red]✗[/red] {e.message}")
        raise typer.Exit(1)

    table = Table(title=f"Lookup tables in {data_dir}")
    table.add_column("Table")
    table.add_column("Entries", justify="right")
    table.add_row("colors", str(len(colors)))
    table.add_row("species", str(len(species)))
    console.print(table)


if __name__ == "__main__":
    app()
