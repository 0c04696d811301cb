"""
Core data models for the ARK infographic service.

This module defines the Pydantic models shared by the extraction pipeline
(generated table records) and the runtime service (request bodies and the
derived creature handed to the renderer). JSON uses camelCase field names;
Python code uses the snake_case attributes.
"""

from enum import Enum, IntEnum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

STAT_COUNT = 12
COLOR_REGION_COUNT = 6

# Stat slot 2 is torpidity; its wild level is the creature's base level.
TORPIDITY_STAT_INDEX = 2

RawStatDescriptor = Tuple[float, float, float, float, float]
LinearRgba = Tuple[float, float, float, float]
SrgbColor = Tuple[int, int, int]
StatLevels = Annotated[List[int], Field(min_length=STAT_COUNT, max_length=STAT_COUNT)]


# =============================================================================
# Enums
# =============================================================================


class Sex(IntEnum):
    """Creature sex as sent by clients."""

    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


class OutputFormat(str, Enum):
    """Supported infographic output formats."""

    SVG = "svg"
    PNG = "png"


class CamelModel(BaseModel):
    """Base model serializing to the camelCase names used in the JSON files."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Generated Table Models
# =============================================================================


class ArkColorEntry(CamelModel):
    """One entry of the generated color table."""

    id: int = Field(..., ge=1, description="Positional color ID")
    name: str
    linear_rgba: LinearRgba = Field(..., alias="linearRgba")
    is_dye: bool = Field(..., alias="isDye")


class SpeciesMetaEntry(CamelModel):
    """Per-species metadata as written to the species table."""

    enabled_color_regions: List[bool] = Field(
        ..., alias="enabledColorRegions",
        min_length=COLOR_REGION_COUNT, max_length=COLOR_REGION_COUNT,
    )
    used_stats: List[bool] = Field(
        ..., alias="usedStats", min_length=STAT_COUNT, max_length=STAT_COUNT
    )
    stat_names: Optional[Dict[str, Any]] = Field(None, alias="statNames")
    color_region_names: List[Optional[str]] = Field(
        ..., alias="colorRegionNames",
        min_length=COLOR_REGION_COUNT, max_length=COLOR_REGION_COUNT,
    )
    full_stats_raw: List[Optional[RawStatDescriptor]] = Field(
        ..., alias="fullStatsRaw", min_length=STAT_COUNT, max_length=STAT_COUNT
    )
    tamed_base_health_multiplier: float = Field(1.0, alias="tamedBaseHealthMultiplier")
    stat_imprint_multipliers: List[float] = Field(
        default_factory=lambda: [0.0] * STAT_COUNT,
        alias="statImprintMultipliers",
        min_length=STAT_COUNT,
        max_length=STAT_COUNT,
    )

    @model_validator(mode="after")
    def _used_stats_follow_stat_data(self) -> "SpeciesMetaEntry":
        expected = [raw is not None for raw in self.full_stats_raw]
        if self.used_stats != expected:
            raise ValueError("usedStats must mirror the presence of fullStatsRaw entries")
        return self


# =============================================================================
# Request Models
# =============================================================================


class RequestModel(CamelModel):
    """Request object where an explicit ``null`` on an optional field means "absent"."""

    @model_validator(mode="before")
    @classmethod
    def _null_means_absent(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        optional = set()
        for name, info in cls.model_fields.items():
            if not info.is_required():
                optional.update(key for key in (name, info.alias) if key)
        return {key: value for key, value in data.items() if value is not None or key not in optional}


class CreatureInput(RequestModel):
    """The ``creature`` object of an infographic request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    species_name: str = Field(..., alias="speciesName", min_length=1)
    levels_wild: List[int] = Field(
        ..., alias="levelsWild", min_length=STAT_COUNT, max_length=STAT_COUNT
    )
    levels_dom: List[int] = Field(
        ..., alias="levelsDom", min_length=STAT_COUNT, max_length=STAT_COUNT
    )
    levels_mutated: Optional[StatLevels] = Field(None, alias="levelsMutated")
    sex: Sex = Sex.UNKNOWN
    # Only the first six IDs map to color regions; extra IDs are kept for the renderer
    colors: List[int] = Field(default_factory=lambda: [0] * COLOR_REGION_COUNT)
    taming_effectiveness: float = Field(0.0, alias="tamingEffectiveness", ge=0.0, le=1.0)
    imprinting_bonus: float = Field(0.0, alias="imprintingBonus", ge=0.0, le=1.0)
    creature_name: str = Field("", alias="creatureName")
    is_bred: bool = Field(False, alias="isBred")
    is_neutered: bool = Field(False, alias="isNeutered")
    is_mutagen_applied: bool = Field(False, alias="isMutagenApplied")
    mutations: int = Field(0, ge=0)
    generation: int = Field(0, ge=0)

    @field_validator("sex", mode="before")
    @classmethod
    def _unknown_sex_codes(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool) and value not in list(Sex):
            return Sex.UNKNOWN
        return value

    @field_validator("colors")
    @classmethod
    def _pad_colors(cls, value: List[int]) -> List[int]:
        return list(value) + [0] * (COLOR_REGION_COUNT - len(value))


class RenderOptions(CamelModel):
    """Renderer overrides. Anything besides ``format`` is passed through untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    format: OutputFormat = OutputFormat.SVG

    def overrides(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class InfographicRequestBody(RequestModel):
    """Body of ``POST /api/infographic``."""

    creature: CreatureInput
    game: str = "ASA"
    options: RenderOptions = Field(default_factory=RenderOptions)


# =============================================================================
# Derived Models
# =============================================================================


class StatValues(BaseModel):
    """Output of the external stat calculator."""

    values_breeding: List[float]
    values_current: List[float]


class CreatureData(CamelModel):
    """Fully defaulted creature with derived fields, as given to the renderer."""

    species_name: str = Field(..., alias="speciesName")
    creature_name: str = Field("", alias="creatureName")
    sex: Sex = Sex.UNKNOWN
    is_neutered: bool = Field(False, alias="isNeutered")
    is_mutagen_applied: bool = Field(False, alias="isMutagenApplied")
    is_bred: bool = Field(False, alias="isBred")
    levels_wild: List[int] = Field(..., alias="levelsWild")
    levels_dom: List[int] = Field(..., alias="levelsDom")
    levels_mutated: Optional[List[int]] = Field(None, alias="levelsMutated")
    values_breeding: List[float] = Field(..., alias="valuesBreeding")
    values_current: List[float] = Field(..., alias="valuesCurrent")
    colors: List[int]
    taming_effectiveness: float = Field(0.0, alias="tamingEffectiveness")
    imprinting_bonus: float = Field(0.0, alias="imprintingBonus")
    mutations: int = 0
    generation: int = 0
    level: int
    level_hatched: int = Field(..., alias="levelHatched")
