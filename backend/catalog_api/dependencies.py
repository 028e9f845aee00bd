"""FastAPI dependencies for the Catalog API."""
from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Depends, Header, HTTPException, Request

from .schemas import Scope
from .services.catalog import CatalogService
from .settings import CatalogSettings
from .state import AppState


@dataclass(slots=True)
class Caller:
    """Authorization context supplied by the upstream authentication layer."""

    uid: str
    scopes: list[Scope] = field(default_factory=list)


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> CatalogSettings:
    return app_state.settings


def get_catalog(app_state: AppState = Depends(get_app_state)) -> CatalogService:
    """Return the catalog service dependency."""
    return app_state.catalog


def get_caller(
    x_caller_uid: str | None = Header(default=None),
    x_caller_scopes: str | None = Header(default=None),
) -> Caller:
    """Read the caller identity forwarded by the authentication proxy."""

    if not x_caller_uid:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    scopes: list[Scope] = []
    for raw in (x_caller_scopes or "").split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            scopes.append(Scope(raw))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown scope {raw!r}") from exc
    return Caller(uid=x_caller_uid, scopes=scopes)
