"""File classifier: maps a file's name and extension to a semantic category."""

import re

from ..models import ClassifiedFile, FileCategory, FileRecord
from .errors import ClassificationError

EXTENSION_MAP: dict[str, FileCategory] = {
    # Archives
    "zip": FileCategory.ARCHIVE,
    "7z": FileCategory.ARCHIVE,
    "rar": FileCategory.ARCHIVE,
    "tar": FileCategory.ARCHIVE,
    "gz": FileCategory.ARCHIVE,
    "bz2": FileCategory.ARCHIVE,
    "xz": FileCategory.ARCHIVE,

    # Executables - Windows
    "exe": FileCategory.EXECUTABLE,
    "bat": FileCategory.EXECUTABLE,
    "cmd": FileCategory.EXECUTABLE,
    "msi": FileCategory.INSTALLER,

    # Executables - Linux/Mac
    "sh": FileCategory.EXECUTABLE,
    "run": FileCategory.EXECUTABLE,
    "app": FileCategory.EXECUTABLE,
    "deb": FileCategory.INSTALLER,
    "rpm": FileCategory.INSTALLER,
    "pkg": FileCategory.INSTALLER,
    "dmg": FileCategory.INSTALLER,

    # ROMs - Nintendo
    "nes": FileCategory.ROM,
    "snes": FileCategory.ROM,
    "sfc": FileCategory.ROM,
    "n64": FileCategory.ROM,
    "z64": FileCategory.ROM,
    "v64": FileCategory.ROM,
    "nds": FileCategory.ROM,
    "3ds": FileCategory.ROM,
    "gba": FileCategory.ROM,
    "gbc": FileCategory.ROM,
    "gb": FileCategory.ROM,

    # ROMs - Sega
    "smd": FileCategory.ROM,
    "gen": FileCategory.ROM,
    "bin": FileCategory.ROM,
    "sms": FileCategory.ROM,
    "gg": FileCategory.ROM,
    "32x": FileCategory.ROM,
    "cue": FileCategory.ROM,
    "iso": FileCategory.ROM,

    # ROMs - Sony
    "ps1": FileCategory.ROM,
    "ps2": FileCategory.ROM,
    "psp": FileCategory.ROM,

    # ROMs - Other
    "smc": FileCategory.ROM,
    "fig": FileCategory.ROM,
    "swc": FileCategory.ROM,

    # Documents
    "txt": FileCategory.DOCUMENT,
    "md": FileCategory.DOCUMENT,
    "pdf": FileCategory.DOCUMENT,
    "doc": FileCategory.DOCUMENT,
    "docx": FileCategory.DOCUMENT,
    "nfo": FileCategory.DOCUMENT,
    "rtf": FileCategory.DOCUMENT,

    # Images
    "jpg": FileCategory.IMAGE,
    "jpeg": FileCategory.IMAGE,
    "png": FileCategory.IMAGE,
    "gif": FileCategory.IMAGE,
    "bmp": FileCategory.IMAGE,
    "tga": FileCategory.IMAGE,
}

# Split-archive volumes: game.z01, game.r00, game.7z.001
SPLIT_ARCHIVE_EXTENSION = re.compile(r"^(?:z\d{2}|r\d{2}|\d{3})$")

INSTALLER_PATTERNS = [
    re.compile(r"setup", re.IGNORECASE),
    re.compile(r"install", re.IGNORECASE),
    re.compile(r"installer", re.IGNORECASE),
    re.compile(r"^inst", re.IGNORECASE),
]

EXECUTABLE_EXTENSIONS = frozenset({"exe", "bat", "cmd", "sh", "run", "app"})

PLATFORM_INSTALLER_EXTENSIONS = frozenset({"msi", "deb", "rpm", "pkg", "dmg"})

ROM_SYSTEMS: dict[str, str] = {
    # Nintendo
    "nes": "NES",
    "snes": "SNES",
    "sfc": "SNES",
    "n64": "Nintendo 64",
    "z64": "Nintendo 64",
    "v64": "Nintendo 64",
    "nds": "Nintendo DS",
    "3ds": "Nintendo 3DS",
    "gba": "Game Boy Advance",
    "gbc": "Game Boy Color",
    "gb": "Game Boy",

    # Sega
    "smd": "Sega Genesis",
    "gen": "Sega Genesis",
    "sms": "Sega Master System",
    "gg": "Game Gear",
    "32x": "Sega 32X",

    # Sony
    "ps1": "PlayStation",
    "ps2": "PlayStation 2",
    "psp": "PlayStation Portable",

    # General
    "iso": "Disc Image",
    "cue": "Disc Image",
}


class FileClassifier:
    """Classifies file records. Stateless; safe to share across concurrent walks."""

    def classify(self, record: FileRecord) -> ClassifiedFile:
        """Classify a file record.

        Raises:
            ClassificationError: If the record has no name or a negative size
        """
        if not record.name:
            raise ClassificationError("File record has no name", path=record.path)
        if record.size < 0:
            raise ClassificationError(f"File record has negative size {record.size}", path=record.path)

        if record.is_directory:
            return ClassifiedFile(record=record, category=FileCategory.DIRECTORY, is_executable=False)

        extension = record.extension.lower()
        category = EXTENSION_MAP.get(extension)
        if category is None:
            category = FileCategory.ARCHIVE if SPLIT_ARCHIVE_EXTENSION.match(extension) else FileCategory.UNKNOWN

        if category == FileCategory.EXECUTABLE and self._is_installer_filename(record.name):
            category = FileCategory.INSTALLER

        return ClassifiedFile(
            record=record,
            category=category,
            is_executable=self._is_executable(extension, category),
        )

    @staticmethod
    def _is_installer_filename(filename: str) -> bool:
        return any(pattern.search(filename) for pattern in INSTALLER_PATTERNS)

    @staticmethod
    def _is_executable(extension: str, category: FileCategory) -> bool:
        return (
            category in (FileCategory.EXECUTABLE, FileCategory.INSTALLER)
            or extension in EXECUTABLE_EXTENSIONS
        )

    def is_rom(self, file: ClassifiedFile) -> bool:
        return file.category == FileCategory.ROM

    def is_archive(self, file: ClassifiedFile) -> bool:
        return file.category == FileCategory.ARCHIVE

    def is_installer(self, file: ClassifiedFile) -> bool:
        return file.category == FileCategory.INSTALLER

    def is_platform_installer(self, file: ClassifiedFile) -> bool:
        """True for native package installers (.msi, .deb, ...) as opposed to setup executables."""
        return self.is_installer(file) and file.extension.lower() in PLATFORM_INSTALLER_EXTENSIONS

    def is_game_executable(self, file: ClassifiedFile) -> bool:
        """Check if a file is an executable that is not an installer."""
        return (
            file.category == FileCategory.EXECUTABLE
            and file.is_executable
            and not self.is_installer(file)
        )

    @staticmethod
    def rom_system(extension: str) -> str | None:
        """Get the ROM system display name for an extension."""
        return ROM_SYSTEMS.get(extension.lower())
