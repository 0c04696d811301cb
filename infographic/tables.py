"""
Read-only lookup tables loaded from the extraction pipeline's output.

Each table is constructed explicitly, initialized once, and then shared by
every request. ``initialize()`` is idempotent and safe to call from several
threads or startup hooks at once; the first successful call wins.
"""

import json
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from infographic.models import ArkColorEntry, LinearRgba, SpeciesMetaEntry, SrgbColor
from infographic.utils.errors import TableLoadError, TableNotInitializedError
from infographic.utils.logging import get_logger

logger = get_logger(__name__)

ColorConverter = Callable[[LinearRgba], SrgbColor]


class Color(NamedTuple):
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgb(self) -> SrgbColor:
        return (self.r, self.g, self.b)


# Shown for color 0 ("no color") and for IDs missing from the table
LIGHT_GRAY = Color(211, 211, 211, 255)


def _linear_to_srgb01(x: float) -> float:
    x = min(max(x, 0.0), 1.0)
    return x * 12.92 if x <= 0.0031308 else 1.055 * x ** (1 / 2.4) - 0.055


def linear_to_srgb(linear_rgba: LinearRgba) -> SrgbColor:
    """Convert a linear RGBA color to 8-bit sRGB with the standard transfer curve."""
    r, g, b = (round(_linear_to_srgb01(c) * 255) for c in linear_rgba[:3])
    return (r, g, b)


def _read_json(path: Path):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise TableLoadError(str(path), str(e))


class ColorLookup:
    """ARK color ID to displayable sRGB color."""

    def __init__(
        self,
        path: Optional[Path] = None,
        converter: ColorConverter = linear_to_srgb,
    ) -> None:
        self.path = path
        self.converter = converter
        self._colors: Optional[Dict[int, Color]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_entries(
        cls, entries: Iterable[ArkColorEntry], converter: ColorConverter = linear_to_srgb
    ) -> "ColorLookup":
        lookup = cls(converter=converter)
        lookup._colors = lookup._convert(entries)
        return lookup

    @property
    def initialized(self) -> bool:
        return self._colors is not None

    def initialize(self) -> None:
        """Load the color table. No-op once loaded."""
        if self._colors is not None:
            return
        with self._lock:
            if self._colors is not None:
                return
            if self.path is None:
                raise TableLoadError("<none>", "no color table path configured")
            try:
                entries = TypeAdapter(List[ArkColorEntry]).validate_python(_read_json(self.path))
            except ValidationError as e:
                raise TableLoadError(str(self.path), str(e))
            self._colors = self._convert(entries)
            logger.info(f"Loaded {len(self._colors)} colors from {self.path}")

    def _convert(self, entries: Iterable[ArkColorEntry]) -> Dict[int, Color]:
        colors: Dict[int, Color] = {}
        for entry in entries:
            r, g, b = self.converter(entry.linear_rgba)
            colors[entry.id] = Color(r, g, b, 255)
        return colors

    def get_color(self, color_id: int) -> Color:
        if self._colors is None:
            raise TableNotInitializedError("colors")
        if color_id == 0:
            return LIGHT_GRAY
        return self._colors.get(color_id, LIGHT_GRAY)

    def __len__(self) -> int:
        return len(self._colors or {})


class SpeciesStore:
    """Species name to metadata."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._species: Optional[Dict[str, SpeciesMetaEntry]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_entries(cls, entries: Dict[str, SpeciesMetaEntry]) -> "SpeciesStore":
        store = cls()
        store._species = dict(entries)
        return store

    @property
    def initialized(self) -> bool:
        return self._species is not None

    def initialize(self) -> None:
        """Load the species table. No-op once loaded."""
        if self._species is not None:
            return
        with self._lock:
            if self._species is not None:
                return
            if self.path is None:
                raise TableLoadError("<none>", "no species table path configured")
            try:
                species = TypeAdapter(Dict[str, SpeciesMetaEntry]).validate_python(
                    _read_json(self.path)
                )
            except ValidationError as e:
                raise TableLoadError(str(self.path), str(e))
            self._species = species
            logger.info(f"Loaded {len(species)} species from {self.path}")

    def _table(self) -> Dict[str, SpeciesMetaEntry]:
        if self._species is None:
            raise TableNotInitializedError("species")
        return self._species

    def get(self, name: str) -> Optional[SpeciesMetaEntry]:
        return self._table().get(name)

    def names(self) -> List[str]:
        return list(self._table().keys())

    def __contains__(self, name: str) -> bool:
        return name in self._table()

    def __len__(self) -> int:
        return len(self._species or {})


def resolve_region_colors(
    species: SpeciesMetaEntry,
    color_ids: Sequence[int],
    color_lookup: ColorLookup,
) -> List[Optional[SrgbColor]]:
    """
    Pick the sRGB color for each region, or ``None`` to leave it uncolorized.

    Regions the species doesn't use are never colored, whatever ID the
    request supplies for them.
    """
    region_colors: List[Optional[SrgbColor]] = []
    for index, enabled in enumerate(species.enabled_color_regions):
        color_id = color_ids[index] if index < len(color_ids) else 0
        if enabled and color_id:
            region_colors.append(color_lookup.get_color(color_id).rgb)
        else:
            region_colors.append(None)
    return region_colors
