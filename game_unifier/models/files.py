"""File-level data models produced while walking a repository."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FileCategory(Enum):
    """Semantic category assigned to a single file."""
    EXECUTABLE = "executable"
    INSTALLER = "installer"
    ARCHIVE = "archive"
    ROM = "rom"
    DIRECTORY = "directory"
    DOCUMENT = "document"
    IMAGE = "image"
    UNKNOWN = "unknown"


class ArchiveKind(Enum):
    """Known archive container formats."""
    ZIP = "zip"
    SEVEN_ZIP = "7z"
    RAR = "rar"
    TAR = "tar"
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"
    TAR_XZ = "tar.xz"


@dataclass(frozen=True)
class FileRecord:
    """A single storage entry as reported by a storage adapter."""
    path: str
    name: str
    size: int
    is_directory: bool
    modified_at: datetime
    extension: str  # Lowercase, without the leading dot


@dataclass(frozen=True)
class ClassifiedFile:
    """A file record together with its semantic category."""
    record: FileRecord
    category: FileCategory
    is_executable: bool

    @property
    def path(self) -> str:
        return self.record.path

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def extension(self) -> str:
        return self.record.extension


@dataclass(frozen=True)
class ArchiveInfo:
    """Result of archive detection for one file."""
    main_path: str
    kind: ArchiveKind
    is_multi_part: bool
    parts: tuple[str, ...] = field(default_factory=tuple)  # Only populated for multi-part sets
