"""
Request orchestration for ``POST /api/infographic``.

One request runs through a fixed sequence and stops at the first failure:

1. Cache lookup (hit returns immediately)
2. Parse and validate the body
3. Resolve the species
4. Fill defaults and derive level fields
5. Compute stats
6. Fetch and colorize the sprite (failures degrade to "no image")
7. Render
8. Schedule the cache write in the background
"""

import asyncio
import base64
import json
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from pydantic import ValidationError

from infographic.cache import CachedResponse, ResponseCache, build_cache_key
from infographic.collaborators import Colorizer, RenderContext, Renderer, StatCalculator
from infographic.models import (
    TORPIDITY_STAT_INDEX,
    CreatureData,
    CreatureInput,
    InfographicRequestBody,
    OutputFormat,
    SpeciesMetaEntry,
    SrgbColor,
    StatValues,
)
from infographic.sprites import SpriteStore, sprite_keys
from infographic.tables import ColorLookup, SpeciesStore, resolve_region_colors
from infographic.utils.errors import (
    InvalidBodyError,
    InvalidFieldError,
    MissingFieldError,
    RequestError,
    UnknownSpeciesError,
    UnsupportedFormatError,
)
from infographic.utils.logging import get_logger, log_performance

logger = get_logger(__name__)

SVG_MEDIA_TYPE = "image/svg+xml"
PNG_MEDIA_TYPE = "image/png"


class BackgroundScheduler(Protocol):
    """Anything with Starlette's ``BackgroundTasks.add_task`` signature."""

    def add_task(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        ...


# =============================================================================
# Parsing and derivation
# =============================================================================


def _field_path(loc: Sequence[Any]) -> str:
    return ".".join(str(part) for part in loc)


def _to_request_error(error: ValidationError) -> RequestError:
    first = error.errors()[0]
    field = _field_path(first["loc"])
    if first["type"] == "missing":
        return MissingFieldError(field)
    if tuple(first["loc"]) == ("options", "format"):
        return UnsupportedFormatError(str(first.get("input")), [f.value for f in OutputFormat])
    return InvalidFieldError(field, first["msg"])


def parse_request(body: bytes) -> InfographicRequestBody:
    """
    Parse and validate a raw request body.

    Raises:
        InvalidBodyError: If the body isn't a JSON object
        MissingFieldError: If a required field is absent
        InvalidFieldError: If a field has the wrong shape
        UnsupportedFormatError: If ``options.format`` isn't svg or png
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise InvalidBodyError(str(e))

    if not isinstance(data, dict):
        raise InvalidBodyError("expected a JSON object")

    try:
        return InfographicRequestBody.model_validate(data)
    except ValidationError as e:
        raise _to_request_error(e)


def compute_levels(levels_wild: Sequence[int], levels_dom: Sequence[int]) -> Tuple[int, int]:
    """Return ``(level, level_hatched)``; the torpidity wild level is the base level."""
    level_hatched = levels_wild[TORPIDITY_STAT_INDEX] + 1
    return level_hatched + sum(levels_dom), level_hatched


def effective_taming(creature: CreatureInput) -> Tuple[bool, float]:
    """Return ``(is_tamed, taming_effectiveness)`` as the stat calculator expects them."""
    is_tamed = creature.is_bred or creature.taming_effectiveness > 0
    return is_tamed, 1.0 if creature.is_bred else creature.taming_effectiveness


def derive_creature(creature: CreatureInput, stats: StatValues) -> CreatureData:
    level, level_hatched = compute_levels(creature.levels_wild, creature.levels_dom)
    return CreatureData(
        species_name=creature.species_name,
        creature_name=creature.creature_name,
        sex=creature.sex,
        is_neutered=creature.is_neutered,
        is_mutagen_applied=creature.is_mutagen_applied,
        is_bred=creature.is_bred,
        levels_wild=creature.levels_wild,
        levels_dom=creature.levels_dom,
        levels_mutated=creature.levels_mutated,
        values_breeding=stats.values_breeding,
        values_current=stats.values_current,
        colors=creature.colors,
        taming_effectiveness=creature.taming_effectiveness,
        imprinting_bonus=creature.imprinting_bonus,
        mutations=creature.mutations,
        generation=creature.generation,
        level=level,
        level_hatched=level_hatched,
    )


def png_data_uri(image: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(image).decode("ascii")


# =============================================================================
# Orchestrator
# =============================================================================


class InfographicOrchestrator:
    """
    Turns one request body into a rendered infographic.

    All collaborators are injected; the orchestrator keeps no per-request
    state, so one instance serves every concurrent request.
    """

    def __init__(
        self,
        color_lookup: ColorLookup,
        species_store: SpeciesStore,
        sprite_store: SpriteStore,
        cache: ResponseCache,
        stat_calculator: StatCalculator,
        renderer: Renderer,
        colorizer: Colorizer,
        cache_ttl_seconds: int = 86400,
    ) -> None:
        self.color_lookup = color_lookup
        self.species_store = species_store
        self.sprite_store = sprite_store
        self.cache = cache
        self.stat_calculator = stat_calculator
        self.renderer = renderer
        self.colorizer = colorizer
        self.cache_ttl_seconds = cache_ttl_seconds
        self._raster_ready = False
        self._raster_lock = asyncio.Lock()

    async def handle(self, body: bytes, background: BackgroundScheduler) -> CachedResponse:
        """
        Produce the response for a raw request body.

        Raises:
            RequestError: For any client-input problem (answered with 400)
        """
        cache_key = build_cache_key(body)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit", extra={"cache_key": cache_key})
            return cached

        request = parse_request(body)
        creature_input = request.creature

        species = self.species_store.get(creature_input.species_name)
        if species is None:
            raise UnknownSpeciesError(creature_input.species_name)

        is_tamed, taming = effective_taming(creature_input)
        stats = await asyncio.to_thread(
            self.stat_calculator.compute,
            species,
            creature_input.levels_wild,
            creature_input.levels_dom,
            creature_input.levels_mutated,
            is_tamed,
            taming,
            creature_input.imprinting_bonus,
        )
        creature = derive_creature(creature_input, stats)

        region_colors = resolve_region_colors(species, creature.colors, self.color_lookup)
        image_uri = await self.acquire_sprite(creature.species_name, request.game, region_colors)

        context = RenderContext(
            creature=creature,
            species=species,
            game=request.game,
            config=request.options.overrides(),
            color_lookup=self.color_lookup,
            creature_image_data_uri=image_uri,
            region_colors=region_colors,
        )
        response = await self.render(context, request.options.format)

        background.add_task(self.store_response, cache_key, response)
        return response

    async def acquire_sprite(
        self,
        species_name: str,
        game: str,
        region_colors: List[Optional[SrgbColor]],
    ) -> Optional[str]:
        """
        Fetch base and mask sprites concurrently and colorize them.

        Returns:
            A PNG data URI, or None when no image is available. Never raises.
        """
        base_key, mask_key = sprite_keys(species_name, game)
        try:
            base, mask = await asyncio.gather(
                self.sprite_store.get(base_key),
                self.sprite_store.get(mask_key),
            )
            if base is None:
                logger.info(f"No sprite for {species_name} ({game})")
                return None
            if mask is None:
                return png_data_uri(base)
            image = await asyncio.to_thread(self.colorizer.colorize, base, mask, region_colors)
            return png_data_uri(image)
        except Exception as e:
            logger.error(f"Sprite fetch/colorize failed for {species_name}: {e}")
            return None

    async def _ensure_raster_ready(self) -> None:
        if self._raster_ready:
            return
        async with self._raster_lock:
            if not self._raster_ready:
                await asyncio.to_thread(self.renderer.initialize_raster)
                self._raster_ready = True

    @log_performance
    async def render(self, context: RenderContext, output_format: OutputFormat) -> CachedResponse:
        headers = {"Cache-Control": f"public, max-age={self.cache_ttl_seconds}"}
        if output_format == OutputFormat.PNG:
            await self._ensure_raster_ready()
            png = await asyncio.to_thread(self.renderer.render_png, context)
            return CachedResponse(content=bytes(png), media_type=PNG_MEDIA_TYPE, headers=headers)

        svg = await asyncio.to_thread(self.renderer.render_svg, context)
        return CachedResponse(content=svg.encode("utf-8"), media_type=SVG_MEDIA_TYPE, headers=headers)

    async def store_response(self, cache_key: str, response: CachedResponse) -> None:
        """Background cache write. Failures are logged, never raised."""
        try:
            await self.cache.put(cache_key, response)
        except Exception as e:
            logger.error(f"Cache write failed for {cache_key}: {e}")
