"""
Capability interfaces for the work this service delegates.

Stat computation, rendering/rasterization and sprite colorization live in an
external rendering library. The orchestrator only talks to these protocols, so
a deployment plugs in the real implementations and tests plug in stubs.
"""

import importlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from infographic.models import CreatureData, SpeciesMetaEntry, SrgbColor, StatValues
from infographic.tables import ColorLookup
from infographic.utils.errors import ConfigurationError


class StatCalculator(Protocol):
    """Computes stat values from species data and levels."""

    def compute(
        self,
        species: SpeciesMetaEntry,
        levels_wild: Sequence[int],
        levels_dom: Sequence[int],
        levels_mutated: Optional[Sequence[int]],
        is_tamed: bool,
        taming_effectiveness: float,
        imprinting_bonus: float,
    ) -> StatValues:
        ...


@dataclass
class RenderContext:
    """Everything the renderer needs for one infographic."""
    creature: CreatureData
    species: SpeciesMetaEntry
    game: str
    config: Dict[str, Any]
    color_lookup: ColorLookup
    creature_image_data_uri: Optional[str] = None
    region_colors: List[Optional[SrgbColor]] = field(default_factory=list)


class Renderer(Protocol):
    """Draws the infographic."""

    def render_svg(self, context: RenderContext) -> str:
        ...

    def render_png(self, context: RenderContext) -> bytes:
        ...

    def initialize_raster(self) -> None:
        """Load fonts and the rasterizer. Called before PNG renders; must be idempotent."""
        ...


class Colorizer(Protocol):
    """Paints mask regions of a base sprite."""

    def colorize(
        self,
        base_png: bytes,
        mask_png: bytes,
        region_colors: Sequence[Optional[SrgbColor]],
    ) -> bytes:
        ...


@dataclass
class Collaborators:
    stat_calculator: StatCalculator
    renderer: Renderer
    colorizer: Colorizer


def load_collaborators(path: str) -> Collaborators:
    """
    Import a ``module:factory`` path and call the factory.

    Args:
        path: e.g. ``"ark_render.service:build_collaborators"``

    Raises:
        ConfigurationError: If the path is malformed or the import fails
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(
            f"Collaborators path must look like 'module:factory', got '{path}'",
            {"path": path},
        )
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import collaborators '{path}': {e}", {"path": path})

    collaborators = factory()
    if not isinstance(collaborators, Collaborators):
        raise ConfigurationError(
            f"Collaborators factory '{path}' returned {type(collaborators).__name__}",
            {"path": path},
        )
    return collaborators
