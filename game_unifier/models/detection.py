"""Detection data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .files import ArchiveKind


class RepositoryKind(Enum):
    """Storage backend a detection came from."""
    LOCAL = "local"
    GDRIVE = "gdrive"
    ONEDRIVE = "onedrive"


class GameType(Enum):
    """How a detected game is packaged."""
    INSTALLER_EXECUTABLE = "installer_executable"
    INSTALLER_PLATFORM = "installer_platform"
    PORTABLE_GAME = "portable_game"
    ROM = "rom"
    ARCHIVED = "archived"
    REQUIRES_DOSBOX = "requires_dosbox"
    REQUIRES_SCUMMVM = "requires_scummvm"
    REQUIRES_EMULATOR = "requires_emulator"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExternalIds:
    """Known external identifiers for a game, one optional field per catalog."""
    steam_app_id: int | None = None
    igdb_id: int | None = None
    launchbox_id: str | None = None

    def shared_with(self, other: "ExternalIds") -> str | None:
        """Return the first identifier field carried by both sides, if any."""
        for name in ("steam_app_id", "igdb_id", "launchbox_id"):
            if getattr(self, name) is not None and getattr(other, name) is not None:
                return name
        return None

    @property
    def is_empty(self) -> bool:
        return self.steam_app_id is None and self.igdb_id is None and self.launchbox_id is None


@dataclass(frozen=True)
class GameLocation:
    """Where a detected game lives inside a repository."""
    repository_kind: RepositoryKind
    path: str
    is_archived: bool = False
    archive_parts: tuple[str, ...] = field(default_factory=tuple)
    archive_kind: ArchiveKind | None = None
    size: int | None = None
    modified_at: datetime | None = None


@dataclass(frozen=True)
class DetectedGame:
    """A single per-source observation that a game exists at some location."""
    id: str
    name: str
    game_type: GameType
    location: GameLocation
    confidence: float
    detected_at: datetime
    platform: str | None = None
    external_ids: ExternalIds = field(default_factory=ExternalIds)


@dataclass(frozen=True)
class ScanError:
    """A non-fatal problem recorded against one path during a scan."""
    path: str
    message: str
    code: str | None = None


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one repository root."""
    repository_path: str
    games: list[DetectedGame]
    duration: float  # Seconds
    files_scanned: int
    directories_scanned: int
    errors: list[ScanError]
