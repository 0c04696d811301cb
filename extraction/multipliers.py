"""
Server stat multipliers.

The upstream stat tuples describe official server settings. Servers can scale
per-level and taming gains; the selected preset is baked into the generated
species table so the runtime never has to know about it.
"""

import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pydantic import ValidationError

from extraction.models import MultiplierPreset, ServerMultipliersDocument, StatMultiplier
from infographic.models import STAT_COUNT, RawStatDescriptor
from infographic.utils.errors import MultiplierPresetError
from infographic.utils.logging import get_logger

logger = get_logger(__name__)

IDENTITY_MULTIPLIER: StatMultiplier = (1.0, 1.0, 1.0, 1.0)

# Positions inside a StatMultiplier
TAMING_ADD = 0
TAMING_MULT = 1
DOM_LEVEL = 2
WILD_LEVEL = 3


def apply_stat_multiplier(raw: RawStatDescriptor, mult: StatMultiplier) -> RawStatDescriptor:
    """
    Scale a raw stat descriptor by a server multiplier.

    The base value is never scaled. The taming bonuses are only scaled when
    positive; zero or negative values mark an unused bonus and must stay as-is.

    Args:
        raw: [BaseValue, IncPerWildLevel, IncPerDomLevel, AddWhenTamed, MultAffinity]
        mult: [TamingAdd, TamingMult, DomLevel, WildLevel]

    Returns:
        A new descriptor with the multipliers applied
    """
    base, inc_wild, inc_dom, add_tamed, mult_affinity = raw
    return (
        base,
        inc_wild * mult[WILD_LEVEL],
        inc_dom * mult[DOM_LEVEL],
        add_tamed * mult[TAMING_ADD] if add_tamed > 0 else add_tamed,
        mult_affinity * mult[TAMING_MULT] if mult_affinity > 0 else mult_affinity,
    )


def normalize_stat_multipliers(
    entries: Optional[Sequence[Optional[Sequence[Optional[float]]]]],
) -> List[StatMultiplier]:
    """Expand a preset's multiplier list to exactly one tuple per stat slot."""
    entries = entries or []
    multipliers: List[StatMultiplier] = []
    for index in range(STAT_COUNT):
        entry = entries[index] if index < len(entries) else None
        if entry is None or len(entry) < 4 or any(v is None for v in entry[:4]):
            multipliers.append(IDENTITY_MULTIPLIER)
        else:
            multipliers.append(tuple(float(v) for v in entry[:4]))
    return multipliers


def load_preset(path: Path, preset: str) -> List[StatMultiplier]:
    """
    Read the multiplier document and return the named preset's tuples.

    Raises:
        MultiplierPresetError: If the document can't be read or lacks the preset
    """
    try:
        document = ServerMultipliersDocument.model_validate(
            json.loads(Path(path).read_text(encoding="utf-8"))
        )
    except (OSError, ValueError, ValidationError) as e:
        raise MultiplierPresetError(preset, f"could not read {path}: {e}")

    raw_preset = document.server_multiplier_dictionary.get(preset)
    if raw_preset is None:
        raise MultiplierPresetError(preset, "not found or has no statMultipliers")
    try:
        preset_data = MultiplierPreset.model_validate(raw_preset)
    except ValidationError as e:
        raise MultiplierPresetError(preset, f"malformed preset: {e}")
    if not preset_data.stat_multipliers:
        raise MultiplierPresetError(preset, "not found or has no statMultipliers")

    return normalize_stat_multipliers(preset_data.stat_multipliers)


def resolve_stat_multipliers(path: Path, preset: str) -> Tuple[List[StatMultiplier], Optional[str]]:
    """
    Like :func:`load_preset`, but falls back to identity multipliers.

    Returns:
        The 12 multiplier tuples and a warning message if the fallback was used
    """
    try:
        multipliers = load_preset(path, preset)
    except MultiplierPresetError as e:
        warning = f"{e.message}; using identity multipliers for all stats"
        logger.warning(warning)
        return [IDENTITY_MULTIPLIER] * STAT_COUNT, warning

    logger.info(f"Loaded '{preset}' preset multipliers from {path}")
    return multipliers, None
