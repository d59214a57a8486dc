"""Storage adapters: the contract every repository backend implements.

Adapters report a missing path as a plain negative (``exists`` and
``is_directory`` return False); every other failure is raised as a
``StorageError``.
"""

import asyncio
import posixpath
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
import structlog

from ..models import FileRecord, RepositoryKind
from .errors import StorageError
from .http_client import DriveHttpClient

log = structlog.stdlib.get_logger()

DRIVE_FOLDER_MIME = "application/vnd.google-apps.folder"
DRIVE_FILE_FIELDS = "id,name,mimeType,size,modifiedTime,parents"


def extension_of(name: str) -> str:
    """Lowercase extension of a filename, without the dot."""
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


class StorageAdapter(ABC):
    """Common interface for local and cloud storage."""

    kind: RepositoryKind

    @abstractmethod
    async def list_files(self, path: str) -> list[str]:
        """List the paths of all entries directly inside a directory."""

    @abstractmethod
    async def get_file_info(self, path: str) -> FileRecord:
        """Get metadata for one entry."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if a path exists."""

    @abstractmethod
    async def is_directory(self, path: str) -> bool:
        """Check if a path is a directory."""

    @abstractmethod
    async def download_to_temp(self, path: str) -> str:
        """Make the file available locally and return the local path."""

    @abstractmethod
    async def get_size(self, path: str) -> int:
        """Get file size in bytes."""

    def parent_path(self, path: str) -> str:
        """Path of the directory containing ``path``."""
        return posixpath.dirname(path.rstrip("/"))

    async def resolve_sibling(self, path: str, name: str) -> str | None:
        """Path a sibling named ``name`` would have, or None if it cannot exist."""
        return posixpath.join(self.parent_path(path), name)


class LocalStorageAdapter(StorageAdapter):
    """Repository adapter for a local directory.

    Paths are POSIX-style and relative to the root; ``""`` is the root itself.
    """

    kind = RepositoryKind.LOCAL

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path.resolve()
        log.info("Local storage adapter initialized", root_path=str(self.root_path))

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute() and candidate.resolve().is_relative_to(self.root_path):
            return candidate.resolve()
        return self.root_path / path

    async def list_files(self, path: str) -> list[str]:
        full_path = self._resolve(path)
        try:
            entries = sorted(full_path.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(
                "Unable to list directory",
                original_error=e,
                path=path,
                operation="list_files",
            ) from e
        return [posixpath.join(path, entry.name) if path else entry.name for entry in entries]

    async def get_file_info(self, path: str) -> FileRecord:
        full_path = self._resolve(path)
        try:
            stats = full_path.stat()
        except OSError as e:
            raise StorageError(
                "Unable to read file information",
                original_error=e,
                path=path,
                operation="get_file_info",
            ) from e

        return FileRecord(
            path=path,
            name=full_path.name,
            size=stats.st_size,
            is_directory=full_path.is_dir(),
            modified_at=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            extension=extension_of(full_path.name),
        )

    async def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).exists()
        except OSError:
            return False

    async def is_directory(self, path: str) -> bool:
        try:
            return self._resolve(path).is_dir()
        except OSError:
            return False

    async def download_to_temp(self, path: str) -> str:
        # Local files need no download
        return str(self._resolve(path))

    async def get_size(self, path: str) -> int:
        return (await self.get_file_info(path)).size


class DriveStorageAdapter(StorageAdapter):
    """Repository adapter for a Google Drive folder.

    Paths are Drive file ids; ``""`` is the configured root folder.
    Listings are cached so parent and sibling lookups need no extra requests.
    """

    kind = RepositoryKind.GDRIVE

    def __init__(self, client: DriveHttpClient, root_folder_id: str = "root") -> None:
        self.client = client
        self.root_folder_id = root_folder_id
        self._files: dict[str, dict[str, Any]] = {}
        self._parents: dict[str, str] = {}
        self._children: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

    def _file_id(self, path: str) -> str:
        return path or self.root_folder_id

    async def list_files(self, path: str) -> list[str]:
        folder_id = self._file_id(path)
        ids: list[str] = []
        page_token: str | None = None

        try:
            while True:
                params = {
                    "q": f"'{folder_id}' in parents and trashed = false",
                    "fields": f"nextPageToken,files({DRIVE_FILE_FIELDS})",
                    "pageSize": "1000",
                }
                if page_token:
                    params["pageToken"] = page_token
                page = await self.client.get_json("files", params=params)

                async with self._lock:
                    for entry in page.get("files", []):
                        self._files[entry["id"]] = entry
                        self._parents[entry["id"]] = path
                        ids.append(entry["id"])

                page_token = page.get("nextPageToken")
                if not page_token:
                    break
        except httpx.HTTPError as e:
            raise StorageError(
                "Unable to list Drive folder",
                original_error=e,
                path=path,
                operation="list_files",
            ) from e

        self._children[path] = ids
        return ids

    async def _get_file(self, path: str) -> dict[str, Any]:
        file_id = self._file_id(path)
        if file_id in self._files:
            return self._files[file_id]
        entry = await self.client.get_json(f"files/{file_id}", params={"fields": DRIVE_FILE_FIELDS})
        self._files[file_id] = entry
        return entry

    async def get_file_info(self, path: str) -> FileRecord:
        try:
            entry = await self._get_file(path)
        except httpx.HTTPError as e:
            raise StorageError(
                "Unable to read Drive file information",
                original_error=e,
                path=path,
                operation="get_file_info",
            ) from e

        name = entry.get("name") or "unnamed"
        modified = entry.get("modifiedTime")
        return FileRecord(
            path=path,
            name=name,
            size=int(entry.get("size") or 0),
            is_directory=entry.get("mimeType") == DRIVE_FOLDER_MIME,
            modified_at=(
                datetime.fromisoformat(modified.replace("Z", "+00:00"))
                if modified
                else datetime.now(timezone.utc)
            ),
            extension=extension_of(name),
        )

    async def exists(self, path: str) -> bool:
        try:
            await self._get_file(path)
            return True
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return False
            raise StorageError(
                "Unable to check Drive file",
                original_error=e,
                path=path,
                operation="exists",
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(
                "Unable to check Drive file",
                original_error=e,
                path=path,
                operation="exists",
            ) from e

    async def is_directory(self, path: str) -> bool:
        if not await self.exists(path):
            return False
        return (await self._get_file(path)).get("mimeType") == DRIVE_FOLDER_MIME

    async def download_to_temp(self, path: str) -> str:
        record = await self.get_file_info(path)
        target = Path(tempfile.gettempdir()) / f"gdrive-{self._file_id(path)}-{record.name}"
        try:
            await self.client.download_file(self._file_id(path), target)
        except httpx.HTTPError as e:
            raise StorageError(
                "Unable to download Drive file",
                original_error=e,
                path=path,
                operation="download_to_temp",
            ) from e
        return str(target)

    async def get_size(self, path: str) -> int:
        return (await self.get_file_info(path)).size

    def parent_path(self, path: str) -> str:
        return self._parents.get(path, "")

    async def resolve_sibling(self, path: str, name: str) -> str | None:
        parent = self.parent_path(path)
        siblings = self._children.get(parent)
        if siblings is None:
            siblings = await self.list_files(parent)
        for sibling_id in siblings:
            if self._files.get(sibling_id, {}).get("name") == name:
                return sibling_id
        return None
