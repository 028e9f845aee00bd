"""Filesystem helpers for catalog storage paths."""
from __future__ import annotations

from pathlib import Path

from platformdirs import user_data_dir


APP_NAME = "MediaCatalog"
APP_AUTHOR = "MediaCatalog"


def default_database_url() -> str:
    """Return a SQLite URL inside the platform-appropriate data directory."""

    base_dir = Path(user_data_dir(APP_NAME, APP_AUTHOR))
    return f"sqlite:///{base_dir / 'catalog.db'}"


def ensure_sqlite_path(database_url: str) -> None:
    """Create parent directories when using a SQLite URL."""

    if database_url.startswith("sqlite:///"):
        path_part = database_url.removeprefix("sqlite:///").split("?")[0]
        if path_part and path_part != ":memory:":
            Path(path_part).expanduser().parent.mkdir(parents=True, exist_ok=True)
