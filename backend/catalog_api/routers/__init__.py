"""Router exports for the Catalog API."""
from . import collections, episodes, files, health, maintenance, profiles, seasons, sources, subtitles

__all__ = [
    "collections",
    "episodes",
    "files",
    "health",
    "maintenance",
    "profiles",
    "seasons",
    "sources",
    "subtitles",
]
