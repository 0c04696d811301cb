"""
Species metadata construction.

Turns upstream species records into fixed-size table entries: every entry has
exactly 6 color-region slots and 12 stat slots, with explicit ``None``/``False``
where the upstream record has no data.
"""

from typing import Dict, List, Optional, Sequence

from extraction.models import RawSpecies, StatMultiplier
from extraction.multipliers import IDENTITY_MULTIPLIER, apply_stat_multiplier
from infographic.models import COLOR_REGION_COUNT, STAT_COUNT, RawStatDescriptor, SpeciesMetaEntry
from infographic.utils.logging import get_logger

logger = get_logger(__name__)


def _slot(values: Optional[Sequence], index: int):
    if values is None or index >= len(values):
        return None
    return values[index]


def build_full_stats(
    raw_stats: Optional[Sequence[Optional[Sequence[float]]]],
    multipliers: Sequence[StatMultiplier],
) -> List[Optional[RawStatDescriptor]]:
    """Normalize the 12 stat slots, applying each slot's multiplier."""
    full_stats: List[Optional[RawStatDescriptor]] = []
    for index in range(STAT_COUNT):
        raw = _slot(raw_stats, index)
        if raw is None or len(raw) < 5:
            full_stats.append(None)
            continue
        mult = _slot(multipliers, index) or IDENTITY_MULTIPLIER
        full_stats.append(apply_stat_multiplier(tuple(raw[:5]), mult))
    return full_stats


def build_species_entry(
    species: RawSpecies,
    multipliers: Sequence[StatMultiplier],
) -> SpeciesMetaEntry:
    """Derive the table entry for one upstream species."""
    enabled_regions: List[bool] = []
    region_names: List[Optional[str]] = []
    for index in range(COLOR_REGION_COUNT):
        region = _slot(species.colors, index)
        enabled_regions.append(region is not None)
        region_names.append(region.name if region is not None else None)

    full_stats = build_full_stats(species.full_stats_raw, multipliers)

    imprint = [
        value if value is not None else 0.0
        for value in (_slot(species.stat_imprint_mult, i) for i in range(STAT_COUNT))
    ]

    tamed_base_health = species.tamed_base_health_multiplier
    return SpeciesMetaEntry(
        enabled_color_regions=enabled_regions,
        used_stats=[raw is not None for raw in full_stats],
        stat_names=species.stat_names,
        color_region_names=region_names,
        full_stats_raw=full_stats,
        tamed_base_health_multiplier=1.0 if tamed_base_health is None else tamed_base_health,
        stat_imprint_multipliers=imprint,
    )


def build_species_table(
    species: Sequence[RawSpecies],
    multipliers: Sequence[StatMultiplier],
) -> Dict[str, SpeciesMetaEntry]:
    """Build the name-keyed species table. Later duplicates replace earlier ones."""
    table: Dict[str, SpeciesMetaEntry] = {}
    for raw in species:
        if raw.name in table:
            logger.debug(f"Species '{raw.name}' defined more than once; keeping the last definition")
        table[raw.name] = build_species_entry(raw, multipliers)
    return table
