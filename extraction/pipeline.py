"""
Extraction pipeline - one batch pass from the upstream dump to the two tables.

Steps are explicit:
1. Load and validate the upstream values document (fatal on failure)
2. Resolve the server multiplier preset (identity fallback on failure)
3. Build the color table and species table in memory
4. Write both tables
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from extraction.colors import build_color_table
from extraction.models import ValuesDocument
from extraction.multipliers import resolve_stat_multipliers
from extraction.species import build_species_table
from infographic.config import get_settings
from infographic.models import ArkColorEntry, SpeciesMetaEntry
from infographic.utils.errors import UpstreamDocumentError
from infographic.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

COLORS_FILENAME = "colors.json"
SPECIES_FILENAME = "species-meta.json"


@dataclass
class ExtractionConfig:
    """Configuration for extraction - passed explicitly."""
    values_path: Path
    multipliers_path: Path
    output_dir: Path
    preset: str = "official"

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ExtractionConfig":
        settings = get_settings()
        values = {
            "values_path": settings.values_path,
            "multipliers_path": settings.server_multipliers_path,
            "output_dir": settings.data_dir,
            "preset": settings.multiplier_preset,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(
            values_path=Path(values["values_path"]),
            multipliers_path=Path(values["multipliers_path"]),
            output_dir=Path(values["output_dir"]),
            preset=values["preset"],
        )


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""
    colors: List[ArkColorEntry]
    species: Dict[str, SpeciesMetaEntry]
    colors_path: Path
    species_path: Path
    colors_bytes: int = 0
    species_bytes: int = 0
    warnings: List[str] = field(default_factory=list)


def load_values_document(path: Path) -> ValuesDocument:
    """
    Read and validate the upstream values document.

    Raises:
        UpstreamDocumentError: If the file is missing, not JSON, or malformed
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise UpstreamDocumentError(str(path), str(e))

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise UpstreamDocumentError(str(path), f"invalid JSON: {e}")

    if not isinstance(data, dict):
        raise UpstreamDocumentError(str(path), "top-level value must be an object")

    try:
        return ValuesDocument.model_validate(data)
    except ValidationError as e:
        raise UpstreamDocumentError(str(path), f"unexpected structure: {e}")


def serialize_table(table: Any, indent: Optional[int] = 2) -> str:
    if indent is None:
        return json.dumps(table, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(table, indent=indent, ensure_ascii=False)


def _write_atomic(files: Dict[Path, str]) -> None:
    """Stage every file first, then move them all into place; no temp file survives."""
    staged: Dict[Path, Path] = {}
    try:
        for path, content in files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(f".{path.name}.tmp")
            staged[path] = tmp_path
            tmp_path.write_text(content, encoding="utf-8")
        for path, tmp_path in staged.items():
            os.replace(tmp_path, path)
    finally:
        for tmp_path in staged.values():
            tmp_path.unlink(missing_ok=True)


class ExtractionPipeline:
    """
    Converts the upstream dump into the runtime lookup tables.

    Both tables are fully built before anything is written, so a failed run
    never leaves half a table behind.
    """

    def __init__(self, config: ExtractionConfig):
        self.config = config

    @log_performance
    def run(self) -> ExtractionResult:
        config = self.config
        warnings: List[str] = []

        logger.info(f"Reading upstream document: {config.values_path}")
        values = load_values_document(config.values_path)

        logger.info(f"Server multipliers: {config.multipliers_path} (preset: {config.preset})")
        multipliers, warning = resolve_stat_multipliers(config.multipliers_path, config.preset)
        if warning:
            warnings.append(warning)

        colors = build_color_table(values.color_definitions, values.dye_definitions)
        species = build_species_table(values.species, multipliers)

        color_data = [entry.to_json_dict() for entry in colors]
        species_data = {name: entry.to_json_dict() for name, entry in species.items()}

        colors_path = config.output_dir / COLORS_FILENAME
        species_path = config.output_dir / SPECIES_FILENAME
        colors_text = serialize_table(color_data)
        species_text = serialize_table(species_data)

        _write_atomic({colors_path: colors_text, species_path: species_text})

        result = ExtractionResult(
            colors=colors,
            species=species,
            colors_path=colors_path,
            species_path=species_path,
            colors_bytes=len(serialize_table(color_data, indent=None).encode("utf-8")),
            species_bytes=len(serialize_table(species_data, indent=None).encode("utf-8")),
            warnings=warnings,
        )
        logger.info(
            f"Wrote {len(colors)} colors and {len(species)} species to {config.output_dir}"
        )
        return result
