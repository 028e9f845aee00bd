"""Application factory for the Catalog API."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import (
    AggregateRecomputeError,
    CatalogError,
    CatalogValidationError,
    ConflictError,
    EntityNotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
)
from .routers import (
    collections,
    episodes,
    files,
    health,
    maintenance,
    profiles,
    seasons,
    sources,
    subtitles,
)
from .settings import CatalogSettings
from .state import AppState

ERROR_STATUS: tuple[tuple[type[CatalogError], int], ...] = (
    (EntityNotFoundError, 404),
    (PermissionDeniedError, 403),
    (ConflictError, 409),
    (CatalogValidationError, 422),
    (StoreUnavailableError, 503),
    (AggregateRecomputeError, 500),
)


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)), 500
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(settings: CatalogSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""

    resolved_settings = settings or CatalogSettings()
    app_state = AppState(settings=resolved_settings)

    app = FastAPI(title="Media Catalog API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CatalogError, _catalog_error_handler)

    for router in (
        health.router,
        profiles.router,
        files.router,
        collections.router,
        seasons.router,
        episodes.router,
        sources.router,
        subtitles.router,
        maintenance.router,
    ):
        app.include_router(router)

    return app
