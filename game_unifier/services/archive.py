"""Archive detection, including multi-part archive sets recognised by file naming."""

import posixpath
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import structlog

from ..models import ArchiveInfo, ArchiveKind, ClassifiedFile, FileCategory
from .storage import StorageAdapter, extension_of

log = structlog.stdlib.get_logger()

ARCHIVE_KINDS: dict[str, ArchiveKind] = {
    "zip": ArchiveKind.ZIP,
    "7z": ArchiveKind.SEVEN_ZIP,
    "rar": ArchiveKind.RAR,
    "tar": ArchiveKind.TAR,
    "gz": ArchiveKind.TAR_GZ,
    "bz2": ArchiveKind.TAR_BZ2,
    "xz": ArchiveKind.TAR_XZ,
}


@dataclass(frozen=True)
class NamingFamily:
    """A multi-part naming convention.

    ``member`` builds the name of the part with a given index. A family may
    have a fixed ``leading`` member probed before the numbered run
    (``game.rar`` before ``game.r00``) or a ``closing`` member probed once
    after it (``game.zip`` after ``game.z01``, ``game.z02``).
    """
    name: str
    pattern: re.Pattern[str]
    member: Callable[[re.Match[str], int], str]
    first_index: int
    last_index: int
    leading: Callable[[re.Match[str]], str] | None = None
    closing: Callable[[re.Match[str]], str] | None = None

    def numbered_members(self, match: re.Match[str], limit: int) -> Iterator[str]:
        last = min(self.last_index, self.first_index + limit - 1)
        for index in range(self.first_index, last + 1):
            yield self.member(match, index)


def _padded(match: re.Match[str], index: int) -> str:
    return str(index).zfill(len(match["num"]))


def _cased(match: re.Match[str], text: str) -> str:
    """Spell a generated extension in the case of the matched marker (GAME.Z01 -> GAME.ZIP)."""
    return text.upper() if match["tag"].isupper() else text


# Order matters: the first family whose pattern matches a filename is the only one applied.
MULTI_PART_FAMILIES: tuple[NamingFamily, ...] = (
    # game.part1.rar, game.part2.rar, ...
    NamingFamily(
        name="part",
        pattern=re.compile(r"^(?P<name>.+)\.(?P<tag>part)(?P<num>\d+)\.(?P<ext>rar|zip|7z)$", re.IGNORECASE),
        member=lambda m, i: f"{m['name']}.{m['tag']}{_padded(m, i)}.{m['ext']}",
        first_index=1,
        last_index=99,
    ),
    # game.z01, game.z02, ..., then game.zip
    NamingFamily(
        name="zip-split",
        pattern=re.compile(r"^(?P<name>.+)\.(?P<tag>z)(?P<num>\d{2})$", re.IGNORECASE),
        member=lambda m, i: f"{m['name']}.{m['tag']}{i:02d}",
        first_index=1,
        last_index=99,
        closing=lambda m: f"{m['name']}.{_cased(m, 'zip')}",
    ),
    # game.001, game.002, ...
    NamingFamily(
        name="numbered",
        pattern=re.compile(r"^(?P<name>.+)\.(?P<num>\d{3})$"),
        member=lambda m, i: f"{m['name']}.{i:03d}",
        first_index=1,
        last_index=999,
    ),
    # game.rar, then game.r00, game.r01, ...
    NamingFamily(
        name="rar-volume",
        pattern=re.compile(r"^(?P<name>.+)\.(?P<tag>r)(?P<num>\d{2})$", re.IGNORECASE),
        member=lambda m, i: f"{m['name']}.{m['tag']}{i:02d}",
        first_index=0,
        last_index=99,
        leading=lambda m: f"{m['name']}.{_cased(m, 'rar')}",
    ),
)


def archive_kind_for(filename: str) -> ArchiveKind | None:
    """Archive kind implied by a filename's extension, including split volumes."""
    extension = extension_of(filename)
    if extension in ARCHIVE_KINDS:
        return ARCHIVE_KINDS[extension]
    if re.fullmatch(r"z\d{2}", extension):
        return ArchiveKind.ZIP
    if re.fullmatch(r"r\d{2}", extension):
        return ArchiveKind.RAR
    if re.fullmatch(r"\d{3}", extension):
        inner = extension_of(filename[: -len(extension) - 1])
        return ARCHIVE_KINDS.get(inner, ArchiveKind.SEVEN_ZIP)
    return None


class ArchiveDetector:
    """Detects archives and multi-part archive sets through a storage adapter."""

    def __init__(self, adapter: StorageAdapter, max_parts: int = 99) -> None:
        """Initialize the archive detector.

        Args:
            adapter: Storage adapter used to probe sibling parts
            max_parts: Maximum existence probes per numbered run
        """
        self.adapter = adapter
        self.max_parts = max_parts

    async def detect_archive(self, file: ClassifiedFile) -> ArchiveInfo | None:
        """Detect whether a classified file is an archive and which set it belongs to.

        Returns:
            ArchiveInfo, or None if the file is not an archive of a known kind
        """
        if file.category != FileCategory.ARCHIVE:
            return None

        kind = archive_kind_for(file.name)
        if kind is None:
            return None

        parts = await self._detect_parts(file)
        if len(parts) > 1:
            log.debug("Multi-part archive detected", path=file.path, parts=len(parts))
            return ArchiveInfo(main_path=parts[0], kind=kind, is_multi_part=True, parts=tuple(parts))

        return ArchiveInfo(main_path=file.path, kind=kind, is_multi_part=False)

    async def _detect_parts(self, file: ClassifiedFile) -> list[str]:
        for family in MULTI_PART_FAMILIES:
            match = family.pattern.match(file.name)
            if match is None:
                continue
            return await self._probe_family(family, match, file.path)
        return []

    async def _probe_family(self, family: NamingFamily, match: re.Match[str], path: str) -> list[str]:
        confirmed: list[str] = []

        if family.leading is not None:
            leading = await self._existing_sibling(path, family.leading(match))
            if leading is None:
                return confirmed
            confirmed.append(leading)

        for member in family.numbered_members(match, self.max_parts):
            part = await self._existing_sibling(path, member)
            if part is None:
                break
            confirmed.append(part)

        if family.closing is not None and confirmed:
            closing = await self._existing_sibling(path, family.closing(match))
            if closing is not None:
                confirmed.append(closing)

        return confirmed

    async def _existing_sibling(self, path: str, name: str) -> str | None:
        candidate = await self.adapter.resolve_sibling(path, name)
        if candidate is None or not await self.adapter.exists(candidate):
            return None
        return candidate

    @staticmethod
    def is_multi_part_name(filename: str) -> bool:
        """Check if a filename follows any multi-part naming convention."""
        return any(family.pattern.match(filename) for family in MULTI_PART_FAMILIES)

    @staticmethod
    def archive_base_name(filename: str) -> str:
        """Archive name with part indicators removed."""
        base = re.sub(r"\.part\d+\.", ".", filename, flags=re.IGNORECASE)
        base = re.sub(r"\.z\d{2}$", ".zip", base, flags=re.IGNORECASE)
        base = re.sub(r"\.\d{3}$", "", base)
        base = re.sub(r"\.r\d{2}$", ".rar", base, flags=re.IGNORECASE)
        return base

    def group_archive_parts(self, files: list[ClassifiedFile]) -> dict[str, list[ClassifiedFile]]:
        """Group the archive files of a listing by their part-free base name."""
        groups: dict[str, list[ClassifiedFile]] = {}
        for file in files:
            if file.category != FileCategory.ARCHIVE:
                continue
            groups.setdefault(self.archive_base_name(posixpath.basename(file.name)), []).append(file)
        return groups
