"""Shared state container for the Catalog API."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.catalog import CatalogService
from .settings import CatalogSettings
from .stores.entity_store import EntityStore


@dataclass(slots=True)
class AppState:
    """Encapsulates the catalog components shared across routers."""

    settings: CatalogSettings
    engine: Engine
    store: EntityStore
    catalog: CatalogService

    def __init__(self, settings: CatalogSettings) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine)
        self.store = EntityStore(self.engine)
        self.catalog = CatalogService(
            self.store,
            lock_timeout=settings.lock_timeout,
            conflict_retries=settings.conflict_retries,
        )
