"""Data models for the game unifier."""

from .catalog import (
    DriveSourceDetails,
    GameMetadata,
    GameSource,
    IdentificationResult,
    IdentifiedGame,
    LocalSourceDetails,
    SourceDetails,
    StorefrontSourceDetails,
    UnifiedGame,
)
from .config import AppConfig, IdentifierConfig, MatcherConfig, MatchStrategy, ScannerConfig
from .detection import (
    DetectedGame,
    ExternalIds,
    GameLocation,
    GameType,
    RepositoryKind,
    ScanError,
    ScanResult,
)
from .files import ArchiveInfo, ArchiveKind, ClassifiedFile, FileCategory, FileRecord
from .names import ExtractedName

__all__ = [
    "AppConfig",
    "ArchiveInfo",
    "ArchiveKind",
    "ClassifiedFile",
    "DetectedGame",
    "DriveSourceDetails",
    "ExternalIds",
    "ExtractedName",
    "FileCategory",
    "FileRecord",
    "GameLocation",
    "GameMetadata",
    "GameSource",
    "GameType",
    "IdentificationResult",
    "IdentifiedGame",
    "IdentifierConfig",
    "LocalSourceDetails",
    "MatchStrategy",
    "MatcherConfig",
    "RepositoryKind",
    "ScanError",
    "ScanResult",
    "ScannerConfig",
    "SourceDetails",
    "StorefrontSourceDetails",
    "UnifiedGame",
]
