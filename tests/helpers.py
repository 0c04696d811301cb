"""
Builders and fakes shared by the test modules.
"""

import json
from typing import Dict, List, Optional, Sequence
from unittest.mock import MagicMock

from infographic.collaborators import Collaborators
from infographic.models import SpeciesMetaEntry, StatValues
from infographic.sprites import SpriteStore


def make_species(
    enabled_regions: Sequence[bool] = (True, True, True, True, True, True),
    used_stats: Optional[Sequence[bool]] = None,
) -> SpeciesMetaEntry:
    """Build a species entry with plausible stat tuples."""
    used_stats = list(used_stats) if used_stats is not None else [True] * 12
    full_stats = [
        (100.0 + i, 0.2, 0.17, 0.5, 0.4) if used else None
        for i, used in enumerate(used_stats)
    ]
    return SpeciesMetaEntry(
        enabled_color_regions=list(enabled_regions),
        used_stats=used_stats,
        stat_names=None,
        color_region_names=[f"Region {i}" if on else None for i, on in enumerate(enabled_regions)],
        full_stats_raw=full_stats,
    )


def make_body(raw: Optional[dict] = None, **creature_overrides) -> bytes:
    """Serialize a request body; ``creature_overrides`` patch the default creature."""
    if raw is not None:
        return json.dumps(raw).encode("utf-8")
    creature = {
        "speciesName": "Rex",
        "levelsWild": [0, 0, 10, 0, 0, 0, 0, 0, 0, 0, 0, 0],
        "levelsDom": [0] * 12,
    }
    creature.update(creature_overrides)
    return json.dumps({"creature": creature}).encode("utf-8")


class FakeSpriteStore(SpriteStore):
    """In-memory sprite store that records requested keys."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None, error: Optional[Exception] = None):
        self.objects = objects or {}
        self.error = error
        self.requested: List[str] = []
        self.closed = False

    async def get(self, key: str) -> Optional[bytes]:
        self.requested.append(key)
        if self.error is not None:
            raise self.error
        return self.objects.get(key)

    async def close(self) -> None:
        self.closed = True


def build_collaborators() -> Collaborators:
    """Factory resolved through ``INFOGRAPHIC_COLLABORATORS`` in the tests."""
    stat_calculator = MagicMock()
    stat_calculator.compute.return_value = StatValues(
        values_breeding=[0.0] * 12, values_current=[0.0] * 12
    )
    renderer = MagicMock()
    renderer.render_svg.return_value = "<svg/>"
    return Collaborators(
        stat_calculator=stat_calculator,
        renderer=renderer,
        colorizer=MagicMock(),
    )


def not_collaborators():
    return object()
