"""Database helpers for the Catalog API."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from . import models  # noqa: F401  registers tables on SQLModel.metadata
from .errors import ConflictError, StoreUnavailableError
from .settings import CatalogSettings
from .utils.paths import ensure_sqlite_path


def create_engine_from_settings(settings: CatalogSettings) -> Engine:
    """Create a SQLModel engine using catalog settings."""

    ensure_sqlite_path(settings.database_url)
    connect_args: dict[str, object] = {}
    if settings.database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": settings.database_timeout}
    return create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)


def init_database(engine: Engine) -> None:
    """Create catalog tables when missing."""

    try:
        SQLModel.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(f"Unable to initialise catalog database: {exc}") from exc


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Yield a SQLModel session that commits on success and rolls back on failure.

    Key collisions surface as ``ConflictError``; other SQLAlchemy failures are
    re-raised as ``StoreUnavailableError`` so callers can tell I/O problems
    apart from missing entities.
    """

    session = Session(engine)
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(f"Concurrent write collided on a stored key: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreUnavailableError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
