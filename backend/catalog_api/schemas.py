"""Pydantic models exposed by the Catalog API."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Entity types persisted by the catalog."""

    profile = "profile"
    file = "file"
    collection = "collection"
    season = "season"
    episode = "episode"
    source = "source"
    subtitle = "subtitle"


class Language(str, Enum):
    """Languages a source or subtitle track may carry."""

    en_EN = "en_EN"
    de_DE = "de_DE"
    ja_JP = "ja_JP"
    zh_CN = "zh_CN"


class Visibility(str, Enum):
    """Access tier of a collection."""

    public = "public"
    private = "private"
    unlisted = "unlisted"


class Scope(str, Enum):
    """Roles a profile may hold."""

    wildcard = "*"
    user = "user"
    admin = "admin"
    restricted = "restricted"


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")


class ProfileModel(BaseModel):
    """A registered user profile."""

    uid: str
    username: str
    avatar: str | None = None
    scopes: list[Scope] = Field(default_factory=lambda: [Scope.user])
    creation_date: datetime


class ProfileUpdate(BaseModel):
    """Fields accepted when creating or refreshing a profile."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1)
    avatar: str | None = None
    scopes: list[Scope] | None = Field(
        default=None, description="Role set; new profiles default to the user role."
    )


class FileModel(BaseModel):
    """Metadata of a stored blob. The bytes live in the file service."""

    id: str
    name: str
    owner: str
    private: bool = True
    creation_date: datetime


class FileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    owner: str = Field(min_length=1)
    private: bool = True


class FileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    private: bool | None = None


class CollectionModel(BaseModel):
    """Top level of the catalog hierarchy."""

    id: str
    name: str
    visibility: Visibility
    owner: str
    thumbnail: str | None = Field(default=None, description="File id of the thumbnail image.")
    seasons: list[str] = Field(default_factory=list)
    creation_date: datetime


class CollectionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    visibility: Visibility
    owner: str = Field(min_length=1)
    thumbnail: str | None = None


class CollectionUpdate(BaseModel):
    """Subset of collection fields allowed to be updated; an explicit null clears the thumbnail."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    visibility: Visibility | None = None
    thumbnail: str | None = None


class SeasonModel(BaseModel):
    """A season of a collection with its derived language sets."""

    id: str
    collection_id: str
    index: int
    episodes: list[str] = Field(default_factory=list)
    languages: list[Language] = Field(
        default_factory=list, description="Distinct source languages across all episodes."
    )
    subtitles: list[Language] = Field(
        default_factory=list,
        description="Distinct embedded and standalone subtitle languages across all episodes.",
    )


class SeasonCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int = Field(ge=0)


class SeasonUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int | None = Field(default=None, ge=0)


class EpisodeModel(BaseModel):
    id: str
    season_id: str
    index: int
    name: str
    sources: list[str] = Field(default_factory=list)
    subtitles: list[str] = Field(default_factory=list)
    creation_date: datetime


class EpisodeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int = Field(ge=0)
    name: str = Field(min_length=1)


class EpisodeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int | None = Field(default=None, ge=0)
    name: str | None = Field(default=None, min_length=1)


class SourceModel(BaseModel):
    """A playable rendition of an episode."""

    id: str
    season_id: str
    episode_id: str
    language: Language
    key: str = Field(description="File id of the media blob.")
    subtitles: Language | None = Field(
        default=None, description="Language of the embedded subtitle track, if any."
    )
    creation_date: datetime


class SourceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: Language
    key: str = Field(min_length=1)
    subtitles: Language | None = None


class SourceUpdate(BaseModel):
    """Source fields allowed to change; an explicit null removes the embedded subtitle track."""

    model_config = ConfigDict(extra="forbid")

    language: Language | None = None
    key: str | None = Field(default=None, min_length=1)
    subtitles: Language | None = None


class SubtitleModel(BaseModel):
    """A standalone subtitle file attached to an episode."""

    id: str
    season_id: str
    episode_id: str
    language: Language
    key: str
    creation_date: datetime


class SubtitleCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: Language
    key: str = Field(min_length=1)


class SubtitleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: Language | None = None
    key: str | None = Field(default=None, min_length=1)


class EpisodeDetailModel(BaseModel):
    """Episode with its sources and subtitles expanded in membership order."""

    id: str
    season_id: str
    index: int
    name: str
    sources: list[SourceModel] = Field(default_factory=list)
    subtitles: list[SubtitleModel] = Field(default_factory=list)
    creation_date: datetime


class SeasonTreeModel(BaseModel):
    """Season with every episode expanded."""

    id: str
    collection_id: str
    index: int
    episodes: list[EpisodeDetailModel] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)
    subtitles: list[Language] = Field(default_factory=list)


class RepairReport(BaseModel):
    """Outcome of a consistency repair pass."""

    seasons: list[str] = Field(
        default_factory=list, description="Seasons whose aggregates were recomputed."
    )
    pruned: list[str] = Field(
        default_factory=list,
        description="Dangling membership ids removed, formatted as kind:parent_id:child_id.",
    )


class FileCreateRequest(BaseModel):
    """File registration issued by the upload service; the caller becomes the owner."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = Field(default=None, description="Id assigned by the blob service.")
    name: str = Field(min_length=1)
    private: bool = True


class CollectionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    visibility: Visibility
    thumbnail: str | None = None


class SeasonCreateRequest(SeasonCreate):
    collection_id: str


class EpisodeCreateRequest(EpisodeCreate):
    season_id: str


class SourceCreateRequest(SourceCreate):
    episode_id: str


class SubtitleCreateRequest(SubtitleCreate):
    episode_id: str
