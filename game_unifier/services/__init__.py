"""Service layer: scanning, identification, unification and storage integrations."""

from .archive import ArchiveDetector
from .catalog import InMemoryMetadataCatalog, MetadataCatalog
from .classifier import FileClassifier
from .config import ConfigurationService, ValidationResult
from .errors import (
    AppError,
    CatalogUnavailableError,
    ClassificationError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    ScanRootError,
    StorageError,
    UserFriendlyError,
    ValidationError,
)
from .filesystem import SnapshotStore
from .http_client import DriveHttpClient
from .identifier import CatalogIdentifier
from .matcher import GameMatcher, normalize_title, title_similarity
from .name_extractor import NameExtractor
from .scanner import RepositoryScanner
from .storage import DriveStorageAdapter, LocalStorageAdapter, StorageAdapter
from .unified import UnifiedCatalog
from .walker import RecursiveWalker

__all__ = [
    "AppError",
    "ArchiveDetector",
    "CatalogIdentifier",
    "CatalogUnavailableError",
    "ClassificationError",
    "ConfigurationError",
    "ConfigurationService",
    "DriveHttpClient",
    "DriveStorageAdapter",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "FileClassifier",
    "GameMatcher",
    "InMemoryMetadataCatalog",
    "LocalStorageAdapter",
    "MetadataCatalog",
    "NameExtractor",
    "RecursiveWalker",
    "RepositoryScanner",
    "ScanRootError",
    "SnapshotStore",
    "StorageAdapter",
    "StorageError",
    "UnifiedCatalog",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "normalize_title",
    "title_similarity",
]
