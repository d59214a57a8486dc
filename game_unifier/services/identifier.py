"""Catalog identifier: pairs detected games with reference metadata."""

import structlog
from rapidfuzz.distance import Levenshtein

from ..models import DetectedGame, GameMetadata, IdentifiedGame, IdentifierConfig
from .catalog import MetadataCatalog
from .errors import CatalogUnavailableError
from .name_extractor import NameExtractor

log = structlog.stdlib.get_logger()

BASE_CONFIDENCE = 0.5
NAME_WEIGHT = 0.4
PLATFORM_MATCH_BONUS = 0.2
PLATFORM_SIMILARITY_WEIGHT = 0.1


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive edit-distance similarity in [0, 1]."""
    return Levenshtein.normalized_similarity(a.lower(), b.lower())


class CatalogIdentifier:
    """Identifies detected games against a metadata catalog."""

    def __init__(
        self,
        catalog: MetadataCatalog,
        config: IdentifierConfig | None = None,
        extractor: NameExtractor | None = None,
        identifier_id: str = "catalog",
    ) -> None:
        self.catalog = catalog
        self.config = config or IdentifierConfig()
        self.extractor = extractor or NameExtractor()
        self.identifier_id = identifier_id

    def is_ready(self) -> bool:
        return self.catalog.is_populated()

    def search(self, name: str, platform: str | None = None) -> list[GameMetadata]:
        """Exact title matches if any, otherwise fuzzy matches ranked best first.

        A platform with no catalog entries is dropped from the query rather
        than hiding every candidate.
        """
        self._ensure_ready()

        for platform_filter in dict.fromkeys((platform, None)):
            exact = self.catalog.search_exact(name, platform_filter)
            if exact:
                return exact
            fuzzy = self.catalog.search_fuzzy(name, platform_filter, self.config.max_results)
            if fuzzy:
                return fuzzy
        return []

    def identify(self, detected: DetectedGame) -> IdentifiedGame:
        """Find the best catalog candidate for a detected game.

        Confidence below ``min_confidence`` yields an unidentified result
        (no metadata) rather than a weak assertion.

        Raises:
            CatalogUnavailableError: If the catalog is not populated
        """
        self._ensure_ready()

        extracted = self.extractor.extract(detected.name)
        name = extracted.clean_name or detected.name
        platform = extracted.platform or detected.platform

        candidates = self.search(name, platform)
        if not candidates:
            log.info("No catalog match", name=name, platform=platform)
            return IdentifiedGame(detected_game=detected, match_confidence=0.0, source=self.identifier_id)

        best = candidates[0]
        confidence = self.match_confidence(name, best.title, platform, best.platform)

        if confidence < self.config.min_confidence:
            log.info("Catalog match below threshold", name=name, candidate=best.title, confidence=confidence)
            return IdentifiedGame(detected_game=detected, match_confidence=confidence, source=self.identifier_id)

        log.info(
            "Game identified",
            name=name,
            title=best.title,
            platform=best.platform,
            candidates=len(candidates),
            confidence=round(confidence, 3),
        )
        return IdentifiedGame(
            detected_game=detected,
            match_confidence=confidence,
            metadata=best,
            source=self.identifier_id,
        )

    @staticmethod
    def match_confidence(
        extracted_name: str,
        matched_name: str,
        extracted_platform: str | None = None,
        matched_platform: str | None = None,
    ) -> float:
        confidence = BASE_CONFIDENCE + NAME_WEIGHT * string_similarity(extracted_name, matched_name)

        if extracted_platform and matched_platform:
            if extracted_platform.lower() == matched_platform.lower():
                confidence += PLATFORM_MATCH_BONUS
            else:
                confidence += PLATFORM_SIMILARITY_WEIGHT * string_similarity(extracted_platform, matched_platform)

        return min(confidence, 1.0)

    def _ensure_ready(self) -> None:
        if not self.catalog.is_populated():
            raise CatalogUnavailableError()
