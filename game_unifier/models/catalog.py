"""Catalog and unification data models."""

from dataclasses import dataclass, field
from datetime import datetime

from .detection import DetectedGame


@dataclass(frozen=True)
class GameMetadata:
    """A reference game record owned by an external metadata catalog."""
    id: str
    title: str
    source: str
    platform: str | None = None
    developer: str | None = None
    publisher: str | None = None
    release_date: str | None = None
    description: str | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)
    rating: float | None = None  # 0-100 scale
    cover_url: str | None = None


@dataclass(frozen=True)
class IdentifiedGame:
    """A detected game paired with its best catalog candidate, if any."""
    detected_game: DetectedGame
    match_confidence: float
    metadata: GameMetadata | None = None
    source: str | None = None


@dataclass(frozen=True)
class IdentificationResult:
    """One identifier's verdict for a unified game."""
    identifier_id: str
    metadata: GameMetadata
    confidence: float
    identified_at: datetime


@dataclass(frozen=True)
class LocalSourceDetails:
    """Source details for a game found on local disk."""
    root_path: str


@dataclass(frozen=True)
class DriveSourceDetails:
    """Source details for a game found in a cloud drive folder."""
    folder_id: str


@dataclass(frozen=True)
class StorefrontSourceDetails:
    """Source details for a game owned in a storefront library."""
    store: str
    store_game_id: str


SourceDetails = LocalSourceDetails | DriveSourceDetails | StorefrontSourceDetails


@dataclass
class GameSource:
    """One source's view of a game."""
    source_id: str
    detected_game: DetectedGame
    identification: IdentifiedGame | None = None
    installed: bool = False
    last_played: datetime | None = None
    playtime: int = 0  # Minutes
    details: SourceDetails | None = None


@dataclass
class UnifiedGame:
    """A canonical game aggregating detections from every source.

    Consolidated fields (title, platform, cover_url, is_installed,
    total_playtime, last_played) are owned by the catalog and recomputed
    from ``sources`` and ``identifications`` after every mutation.
    """
    id: str
    title: str
    sources: list[GameSource]
    created_at: datetime
    updated_at: datetime
    identifications: list[IdentificationResult] = field(default_factory=list)
    platform: str | None = None
    cover_url: str | None = None
    is_installed: bool = False
    total_playtime: int = 0
    last_played: datetime | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    user_rating: int | None = None  # 1-5
    is_favorite: bool = False
    is_hidden: bool = False
