"""Repository scanner: walks a repository and turns its files into detected games."""

import posixpath
import time
import uuid
from datetime import datetime, timezone

import structlog

from ..models import (
    ArchiveInfo,
    ClassifiedFile,
    DetectedGame,
    FileRecord,
    GameLocation,
    GameType,
    ScanError,
    ScannerConfig,
    ScanResult,
)
from .archive import ArchiveDetector
from .classifier import FileClassifier
from .errors import ClassificationError, ScanRootError, StorageError
from .name_extractor import NameExtractor
from .storage import StorageAdapter
from .walker import RecursiveWalker

log = structlog.stdlib.get_logger()

INSTALLER_CONFIDENCE = 0.9
ROM_CONFIDENCE = 0.95
MULTI_PART_ARCHIVE_CONFIDENCE = 0.85
ARCHIVE_CONFIDENCE = 0.8
PORTABLE_GAME_CONFIDENCE = 0.7

# Substrings of executable paths that are rarely the game itself
EXECUTABLE_PENALTIES = (
    ("unins", 100),
    ("setup", 100),
    ("config", 50),
    ("launcher", 20),
)


class RepositoryScanner:
    """Detects games in one repository through a storage adapter.

    Detection rules run per directory in a fixed order (installers, ROMs,
    archives, then one portable game) and are not mutually exclusive.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        config: ScannerConfig | None = None,
        classifier: FileClassifier | None = None,
        extractor: NameExtractor | None = None,
    ) -> None:
        self.adapter = adapter
        self.config = config or ScannerConfig()
        self.classifier = classifier or FileClassifier()
        self.extractor = extractor or NameExtractor()
        self.walker = RecursiveWalker(adapter, self.config)
        self.archive_detector = ArchiveDetector(adapter, max_parts=self.config.max_archive_parts)

    async def scan(self, root: str = "") -> ScanResult:
        """Scan a repository root.

        Per-file and per-directory failures are collected in the result's
        ``errors``; the scan itself only fails when the root is unreadable.

        Raises:
            ScanRootError: If the repository root cannot be read
        """
        started = time.perf_counter()
        classified: list[ClassifiedFile] = []
        errors: list[ScanError] = []

        def visit(record: FileRecord) -> None:
            try:
                classified.append(self.classifier.classify(record))
            except ClassificationError as e:
                log.warning("Failed to classify file", path=record.path, error=e.message)
                errors.append(ScanError(path=record.path, message=e.message, code="classification"))

        def on_error(path: str, error: StorageError) -> None:
            errors.append(ScanError(path=path, message=error.message, code="storage"))

        log.info("Scan started", root=root, repository_kind=self.adapter.kind.value)

        try:
            await self.walker.walk(root, visit, on_error=on_error)
        except StorageError as e:
            log.error("Scan root unreadable", root=root, error=str(e))
            raise ScanRootError(root, original_error=e) from e

        games: list[DetectedGame] = []
        for directory, files in self._group_by_directory(classified).items():
            games.extend(await self._detect_in_directory(directory, files, errors))

        duration = time.perf_counter() - started
        log.info(
            "Scan completed",
            root=root,
            games=len(games),
            errors=len(errors),
            files_scanned=self.walker.files_scanned,
            directories_scanned=self.walker.directories_scanned,
            duration=round(duration, 3),
        )

        return ScanResult(
            repository_path=root,
            games=games,
            duration=duration,
            files_scanned=self.walker.files_scanned,
            directories_scanned=self.walker.directories_scanned,
            errors=errors,
        )

    def _group_by_directory(self, files: list[ClassifiedFile]) -> dict[str, list[ClassifiedFile]]:
        groups: dict[str, list[ClassifiedFile]] = {}
        for file in files:
            groups.setdefault(self.adapter.parent_path(file.path), []).append(file)
        return groups

    async def _detect_in_directory(
        self,
        directory: str,
        files: list[ClassifiedFile],
        errors: list[ScanError],
    ) -> list[DetectedGame]:
        games: list[DetectedGame] = []

        def add(file: ClassifiedFile, game_type: GameType, confidence: float, info: ArchiveInfo | None = None) -> None:
            try:
                games.append(self._build_game(file, game_type, confidence, info))
            except Exception as e:
                log.warning("Failed to build detected game", path=file.path, error=str(e), exc_info=True)
                errors.append(ScanError(path=file.path, message=str(e), code="detection"))

        for installer in (f for f in files if self.classifier.is_installer(f)):
            game_type = (
                GameType.INSTALLER_PLATFORM
                if self.classifier.is_platform_installer(installer)
                else GameType.INSTALLER_EXECUTABLE
            )
            add(installer, game_type, INSTALLER_CONFIDENCE)

        for rom in (f for f in files if self.classifier.is_rom(f)):
            add(rom, GameType.ROM, ROM_CONFIDENCE)

        archives = [f for f in files if self.classifier.is_archive(f)]
        if archives:
            for archive, info, confidence in await self._detect_archives(archives, errors):
                add(archive, GameType.ARCHIVED, confidence, info)

        executables = [f for f in files if self.classifier.is_game_executable(f)]
        if executables:
            main = self.find_main_executable(executables)
            add(main, GameType.PORTABLE_GAME, PORTABLE_GAME_CONFIDENCE)

        if games:
            log.debug("Games detected in directory", directory=directory, count=len(games))
        return games

    async def _detect_archives(
        self,
        archives: list[ClassifiedFile],
        errors: list[ScanError],
    ) -> list[tuple[ClassifiedFile, ArchiveInfo, float]]:
        """Detect archives, emitting each multi-part set once.

        Every member of a confirmed multi-part set is claimed by it, so a
        ``game.zip`` closing a ``game.z01`` run is not reported on its own.
        """
        detected: list[tuple[ClassifiedFile, ArchiveInfo]] = []
        for archive in archives:
            try:
                info = await self.archive_detector.detect_archive(archive)
            except StorageError as e:
                errors.append(ScanError(path=archive.path, message=e.message, code="storage"))
                continue
            except Exception as e:
                log.warning("Failed to detect archive", path=archive.path, error=str(e), exc_info=True)
                errors.append(ScanError(path=archive.path, message=str(e), code="detection"))
                continue
            if info is not None:
                detected.append((archive, info))

        claimed = {part for _, info in detected if info.is_multi_part for part in info.parts}
        emitted: set[str] = set()
        selected: list[tuple[ClassifiedFile, ArchiveInfo, float]] = []

        for archive, info in detected:
            if info.is_multi_part:
                if info.main_path in emitted:
                    continue
                emitted.add(info.main_path)
                confidence = MULTI_PART_ARCHIVE_CONFIDENCE
            else:
                if archive.path in claimed:
                    continue
                confidence = ARCHIVE_CONFIDENCE
            selected.append((archive, info, confidence))

        return selected

    def find_main_executable(self, executables: list[ClassifiedFile]) -> ClassifiedFile:
        """Pick the executable most likely to start the game.

        Shallow and large executables win; uninstallers, setup, config
        and launcher tools are penalised. Ties keep listing order.
        """
        if len(executables) == 1:
            return executables[0]
        return max(executables, key=self._executable_score)

    @staticmethod
    def _executable_score(file: ClassifiedFile) -> float:
        path = file.path.lower()
        depth = len(path.strip("/").split("/"))

        score = (10 - depth) * 10
        score += min(file.size / 1024 / 1024, 100)
        for marker, penalty in EXECUTABLE_PENALTIES:
            if marker in path:
                score -= penalty
        return score

    def _build_game(
        self,
        file: ClassifiedFile,
        game_type: GameType,
        confidence: float,
        archive: ArchiveInfo | None = None,
    ) -> DetectedGame:
        extracted = self.extractor.extract(file.name)

        platform = extracted.platform
        if game_type == GameType.ROM and platform is None:
            platform = self.classifier.rom_system(file.extension)

        location = GameLocation(
            repository_kind=self.adapter.kind,
            path=archive.main_path if archive else file.path,
            is_archived=archive is not None,
            archive_parts=archive.parts if archive else (),
            archive_kind=archive.kind if archive else None,
            size=file.size,
            modified_at=file.record.modified_at,
        )

        return DetectedGame(
            id=uuid.uuid4().hex,
            name=extracted.clean_name or self._stem(file.name),
            game_type=game_type,
            location=location,
            confidence=confidence,
            detected_at=datetime.now(timezone.utc),
            platform=platform,
        )

    @staticmethod
    def _stem(filename: str) -> str:
        stem, _ = posixpath.splitext(filename)
        return stem or filename
