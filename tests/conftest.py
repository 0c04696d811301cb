"""
Shared fixtures for the infographic test suite.
"""

from typing import List
from unittest.mock import MagicMock

import pytest

from infographic.cache import InMemoryResponseCache
from infographic.models import ArkColorEntry, StatValues
from infographic.orchestrator import InfographicOrchestrator
from infographic.tables import ColorLookup, SpeciesStore
from tests.helpers import FakeSpriteStore, make_species


@pytest.fixture
def color_entries() -> List[ArkColorEntry]:
    return [
        ArkColorEntry(id=1, name="Red", linear_rgba=(1.0, 0.0, 0.0, 1.0), is_dye=False),
        ArkColorEntry(id=2, name="Black", linear_rgba=(0.0, 0.0, 0.0, 1.0), is_dye=False),
        ArkColorEntry(id=201, name="Blue Dye", linear_rgba=(0.0, 0.0, 1.0, 1.0), is_dye=True),
    ]


@pytest.fixture
def color_lookup(color_entries) -> ColorLookup:
    return ColorLookup.from_entries(color_entries)


@pytest.fixture
def species_store() -> SpeciesStore:
    return SpeciesStore.from_entries(
        {
            "Rex": make_species(),
            # Region 3 is unused on this species
            "Raptor": make_species(enabled_regions=(True, True, True, False, True, True)),
        }
    )


@pytest.fixture
def sprite_store() -> FakeSpriteStore:
    return FakeSpriteStore(
        {
            "Rex_ASA.png": b"rex-base",
            "Rex_ASA_m.png": b"rex-mask",
            "Raptor_ASA.png": b"raptor-base",
            "Raptor_ASA_m.png": b"raptor-mask",
        }
    )


@pytest.fixture
def response_cache() -> InMemoryResponseCache:
    return InMemoryResponseCache(ttl_seconds=86400)


@pytest.fixture
def stat_calculator() -> MagicMock:
    calculator = MagicMock()
    calculator.compute.return_value = StatValues(
        values_breeding=[1.0] * 12,
        values_current=[2.0] * 12,
    )
    return calculator


@pytest.fixture
def renderer() -> MagicMock:
    renderer = MagicMock()
    renderer.render_svg.side_effect = lambda ctx: (
        f'<svg data-level="{ctx.creature.level}" data-hatched="{ctx.creature.level_hatched}"/>'
    )
    renderer.render_png.return_value = b"\x89PNG-fake"
    return renderer


@pytest.fixture
def colorizer() -> MagicMock:
    colorizer = MagicMock()
    colorizer.colorize.return_value = b"colorized"
    return colorizer


@pytest.fixture
def orchestrator(
    color_lookup, species_store, sprite_store, response_cache, stat_calculator, renderer, colorizer
) -> InfographicOrchestrator:
    return InfographicOrchestrator(
        color_lookup=color_lookup,
        species_store=species_store,
        sprite_store=sprite_store,
        cache=response_cache,
        stat_calculator=stat_calculator,
        renderer=renderer,
        colorizer=colorizer,
    )
