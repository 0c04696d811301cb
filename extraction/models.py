"""
Data models for the upstream documents read by the extraction pipeline.

Only the fields the pipeline consumes are modeled; everything else in the
upstream dumps (taming and breeding data, blueprint paths, ...) is ignored.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from infographic.models import LinearRgba

# [name, [r, g, b, a]] in linear color space
ColorDefinition = Tuple[str, LinearRgba]

# [TamingAdd, TamingMult, DomLevel, WildLevel]
StatMultiplier = Tuple[float, float, float, float]


class UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RawColorRegion(UpstreamModel):
    """A paintable region as described upstream. ``None`` entries mean disabled."""

    name: Optional[str] = None
    colors: Optional[List[str]] = None


class RawSpecies(UpstreamModel):
    """One species entry of the values document."""

    name: str
    # Passed through verbatim
    stat_names: Optional[Dict[str, Any]] = Field(None, alias="statNames")
    colors: Optional[List[Optional[RawColorRegion]]] = None
    full_stats_raw: Optional[List[Optional[List[float]]]] = Field(None, alias="fullStatsRaw")
    tamed_base_health_multiplier: Optional[float] = Field(None, alias="TamedBaseHealthMultiplier")
    stat_imprint_mult: Optional[List[Optional[float]]] = Field(None, alias="statImprintMult")


class ValuesDocument(UpstreamModel):
    """The upstream ``values.json`` game-data dump."""

    color_definitions: List[ColorDefinition] = Field(default_factory=list, alias="colorDefinitions")
    dye_definitions: List[ColorDefinition] = Field(default_factory=list, alias="dyeDefinitions")
    species: List[RawSpecies] = Field(default_factory=list)

    @field_validator("color_definitions", "dye_definitions", "species", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class MultiplierPreset(UpstreamModel):
    """One named bundle of server multipliers."""

    stat_multipliers: Optional[List[Optional[List[Optional[float]]]]] = Field(
        None, alias="statMultipliers"
    )


class ServerMultipliersDocument(UpstreamModel):
    """The upstream ``serverMultipliers.json`` document."""

    # Raw presets; only the selected one is validated
    server_multiplier_dictionary: Dict[str, Any] = Field(
        default_factory=dict, alias="serverMultiplierDictionary"
    )
