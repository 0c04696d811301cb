"""
HTTP surface of the infographic service.

Routes:
    POST /api/infographic   render an infographic (SVG or PNG)
    GET  /api/species       list known species names
    *    /api/health        liveness
Everything else answers 404.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from infographic.cache import InMemoryResponseCache
from infographic.collaborators import Collaborators, load_collaborators
from infographic.config import Settings, get_settings
from infographic.orchestrator import InfographicOrchestrator
from infographic.sprites import create_sprite_store
from infographic.tables import ColorLookup, SpeciesStore
from infographic.utils.errors import ConfigurationError, RequestError
from infographic.utils.logging import get_logger

logger = get_logger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_orchestrator(
    settings: Optional[Settings] = None,
    collaborators: Optional[Collaborators] = None,
) -> InfographicOrchestrator:
    """Wire an orchestrator from settings. Tables are loaded later, at startup."""
    settings = settings or get_settings()
    if collaborators is None:
        if not settings.collaborators:
            raise ConfigurationError(
                "No renderer configured; set INFOGRAPHIC_COLLABORATORS=module:factory"
            )
        collaborators = load_collaborators(settings.collaborators)

    return InfographicOrchestrator(
        color_lookup=ColorLookup(Path(settings.colors_path)),
        species_store=SpeciesStore(Path(settings.species_path)),
        sprite_store=create_sprite_store(settings),
        cache=InMemoryResponseCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        ),
        stat_calculator=collaborators.stat_calculator,
        renderer=collaborators.renderer,
        colorizer=collaborators.colorizer,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )


def create_app(orchestrator: Optional[InfographicOrchestrator] = None) -> FastAPI:
    """Create the FastAPI application around an orchestrator."""
    orchestrator = orchestrator or build_orchestrator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Lookup tables are loaded once for the process lifetime
        orchestrator.color_lookup.initialize()
        orchestrator.species_store.initialize()
        logger.info("Infographic service started")
        try:
            yield
        finally:
            await orchestrator.sprite_store.close()

    app = FastAPI(title="ARK Infographic Service", lifespan=lifespan)
    app.state.orchestrator = orchestrator

    @app.exception_handler(RequestError)
    async def request_error_handler(request: Request, exc: RequestError):
        logger.info(f"Rejected request: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path is reported like an unknown path
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.post("/api/infographic")
    async def infographic(request: Request, background_tasks: BackgroundTasks):
        body = await request.body()
        result = await orchestrator.handle(body, background_tasks)
        return Response(
            content=result.content,
            status_code=result.status_code,
            media_type=result.media_type,
            headers=result.headers,
        )

    @app.get("/api/species")
    async def species_list():
        return JSONResponse(orchestrator.species_store.names())

    @app.api_route("/api/health", methods=ALL_METHODS)
    async def health():
        return PlainTextResponse("OK")

    return app
