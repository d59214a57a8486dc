"""Metadata catalogs: reference game records searched by title."""

from collections.abc import Iterable
from typing import Any, Protocol

import structlog
from rapidfuzz import fuzz, process, utils

from ..models import GameMetadata
from .errors import ValidationError

log = structlog.stdlib.get_logger()

# WRatio score (0-100) below which a fuzzy candidate is not worth returning
FUZZY_SCORE_CUTOFF = 60.0


class MetadataCatalog(Protocol):
    """A read-only source of reference game metadata."""

    def search_exact(self, name: str, platform: str | None = None) -> list[GameMetadata]: ...

    def search_fuzzy(
        self,
        name: str,
        platform: str | None = None,
        max_results: int = 10,
    ) -> list[GameMetadata]: ...

    def is_populated(self) -> bool: ...


class InMemoryMetadataCatalog:
    """Metadata catalog held in memory, loaded from records or a JSON fixture."""

    def __init__(self, records: Iterable[GameMetadata] = (), source: str = "catalog") -> None:
        self.source = source
        self._records: list[GameMetadata] = list(records)

    @classmethod
    def from_dicts(cls, entries: list[dict[str, Any]], source: str = "catalog") -> "InMemoryMetadataCatalog":
        """Build a catalog from plain dictionaries, e.g. a parsed JSON file.

        Raises:
            ValidationError: If an entry lacks an ``id`` or ``title``
        """
        records = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("id") or not entry.get("title"):
                raise ValidationError(
                    f"Catalog entry {index} needs an id and a title",
                    field=f"games[{index}]",
                    value=entry,
                )
            records.append(
                GameMetadata(
                    id=str(entry["id"]),
                    title=entry["title"],
                    source=entry.get("source", source),
                    platform=entry.get("platform"),
                    developer=entry.get("developer"),
                    publisher=entry.get("publisher"),
                    release_date=entry.get("release_date"),
                    description=entry.get("description"),
                    genres=tuple(entry.get("genres", ())),
                    rating=entry.get("rating"),
                    cover_url=entry.get("cover_url"),
                )
            )
        log.info("Metadata catalog loaded", source=source, games=len(records))
        return cls(records, source=source)

    def add(self, record: GameMetadata) -> None:
        self._records.append(record)

    def is_populated(self) -> bool:
        return bool(self._records)

    def search_exact(self, name: str, platform: str | None = None) -> list[GameMetadata]:
        """Records whose title equals ``name``, ignoring case."""
        wanted = name.casefold()
        return [r for r in self._for_platform(platform) if r.title.casefold() == wanted]

    def search_fuzzy(
        self,
        name: str,
        platform: str | None = None,
        max_results: int = 10,
    ) -> list[GameMetadata]:
        """Records ranked by title similarity to ``name``, best first."""
        candidates = self._for_platform(platform)
        if not candidates or not name.strip():
            return []

        ranked = process.extract(
            name,
            [r.title for r in candidates],
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            limit=max_results,
            score_cutoff=FUZZY_SCORE_CUTOFF,
        )
        return [candidates[index] for _, _, index in ranked]

    def _for_platform(self, platform: str | None) -> list[GameMetadata]:
        if platform is None:
            return self._records
        wanted = platform.casefold()
        return [r for r in self._records if r.platform and r.platform.casefold() == wanted]
