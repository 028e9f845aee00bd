"""Database models for the Catalog API."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Timezone-aware creation timestamp."""

    return datetime.now(timezone.utc)


class ProfileRecord(SQLModel, table=True):
    """Persisted user profile and its role set."""

    __tablename__ = "catalog_profiles"

    uid: str = Field(primary_key=True, index=True)
    username: str
    avatar: str | None = Field(default=None)
    scopes: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)


class FileRecord(SQLModel, table=True):
    """Blob metadata; referenced by thumbnails, sources and subtitles."""

    __tablename__ = "catalog_files"

    id: str = Field(primary_key=True, index=True)
    name: str
    owner: str = Field(index=True)
    private: bool = Field(default=True)
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)


class CollectionRecord(SQLModel, table=True):
    __tablename__ = "catalog_collections"

    id: str = Field(primary_key=True, index=True)
    name: str
    visibility: str = Field(index=True)
    owner: str = Field(index=True)
    thumbnail: str | None = Field(default=None)
    seasons: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    version: int = Field(default=0, nullable=False)
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)


class SeasonRecord(SQLModel, table=True):
    __tablename__ = "catalog_seasons"

    id: str = Field(primary_key=True, index=True)
    collection_id: str = Field(index=True)
    index: int = Field(default=0)
    episodes: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    languages: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    subtitles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    version: int = Field(default=0, nullable=False)


class EpisodeRecord(SQLModel, table=True):
    __tablename__ = "catalog_episodes"

    id: str = Field(primary_key=True, index=True)
    season_id: str = Field(index=True)
    index: int = Field(default=0)
    name: str
    sources: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    subtitles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    version: int = Field(default=0, nullable=False)
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)


class SourceRecord(SQLModel, table=True):
    __tablename__ = "catalog_sources"

    id: str = Field(primary_key=True, index=True)
    season_id: str = Field(index=True)
    episode_id: str = Field(index=True)
    language: str
    key: str
    subtitles: str | None = Field(default=None)
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)


class SubtitleRecord(SQLModel, table=True):
    __tablename__ = "catalog_subtitles"

    id: str = Field(primary_key=True, index=True)
    season_id: str = Field(index=True)
    episode_id: str = Field(index=True)
    language: str
    key: str
    creation_date: datetime = Field(default_factory=utc_now, nullable=False)
