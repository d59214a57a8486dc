"""Recursive directory walker with depth, hidden-file and exclusion filtering."""

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable

import structlog

from ..models import FileRecord, ScannerConfig
from .errors import StorageError
from .storage import StorageAdapter

log = structlog.stdlib.get_logger()

WalkCallback = Callable[[FileRecord], Awaitable[None] | None]
ErrorCallback = Callable[[str, StorageError], None]


class RecursiveWalker:
    """Walks a storage tree and calls back once per reachable file.

    In parallel mode sibling entries are walked in batches of
    ``max_parallel``; the callback must tolerate concurrent calls in any order.
    """

    def __init__(self, adapter: StorageAdapter, config: ScannerConfig | None = None) -> None:
        self.adapter = adapter
        self.config = config or ScannerConfig()
        self._exclude_patterns = [self._compile_pattern(p) for p in self.config.exclude_patterns]
        self.files_scanned: int = 0
        self.directories_scanned: int = 0
        self._on_error: ErrorCallback | None = None

    async def walk(self, root: str, visit: WalkCallback, on_error: ErrorCallback | None = None) -> None:
        """Walk the tree under ``root``.

        Unreadable directories below the root are logged, reported to
        ``on_error`` and treated as empty.

        Raises:
            StorageError: If the root itself cannot be read
        """
        self.files_scanned = 0
        self.directories_scanned = 0
        self._on_error = on_error

        log.debug("Starting walk", root=root, parallel=self.config.parallel)
        await self._walk_entry(root, visit, depth=0, is_root=True)
        log.info(
            "Walk completed",
            root=root,
            files_scanned=self.files_scanned,
            directories_scanned=self.directories_scanned,
        )

    async def _walk_entry(self, path: str, visit: WalkCallback, depth: int, is_root: bool = False) -> None:
        if depth > self.config.max_depth:
            return

        try:
            if not await self.adapter.exists(path):
                if is_root:
                    raise StorageError("Repository root does not exist", path=path, operation="walk")
                return
            record = await self.adapter.get_file_info(path)
        except StorageError:
            if is_root:
                raise
            log.warning("Skipping unreadable entry", path=path, exc_info=True)
            return

        # The root is always walked, whatever its name
        if not is_root:
            if not self.config.include_hidden and self.is_hidden(record.name):
                return
            if self.is_excluded(path):
                return

        if not record.is_directory:
            self.files_scanned += 1
            result = visit(record)
            if inspect.isawaitable(result):
                await result
            return

        self.directories_scanned += 1

        try:
            entries = await self.adapter.list_files(path)
        except StorageError as e:
            if is_root:
                raise
            log.error("Error walking directory", path=path, error=str(e))
            entries = []
            if self._on_error is not None:
                self._on_error(path, e)

        if self.config.parallel:
            await self._walk_batches(entries, visit, depth)
        else:
            for entry in entries:
                await self._walk_entry(entry, visit, depth + 1)

    async def _walk_batches(self, entries: list[str], visit: WalkCallback, depth: int) -> None:
        size = max(1, self.config.max_parallel)
        for start in range(0, len(entries), size):
            batch = entries[start:start + size]
            await asyncio.gather(*(self._walk_entry(entry, visit, depth + 1) for entry in batch))

    @staticmethod
    def is_hidden(name: str) -> bool:
        return name.startswith(".")

    def is_excluded(self, path: str) -> bool:
        """Check if a path matches any exclude pattern (case-insensitive)."""
        normalized = path.lower()
        for pattern in self._exclude_patterns:
            if isinstance(pattern, re.Pattern):
                if pattern.fullmatch(normalized):
                    return True
            elif pattern in normalized:
                return True
        return False

    @staticmethod
    def _compile_pattern(pattern: str) -> re.Pattern[str] | str:
        normalized = pattern.lower()
        if "*" not in normalized:
            return normalized
        return re.compile(".*".join(re.escape(piece) for piece in normalized.split("*")))
