"""Tests for the metadata catalog and the catalog identifier."""

from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st

from game_unifier.models import (
    DetectedGame,
    GameLocation,
    GameMetadata,
    GameType,
    IdentifierConfig,
    RepositoryKind,
)
from game_unifier.services.catalog import InMemoryMetadataCatalog
from game_unifier.services.errors import CatalogUnavailableError, ValidationError
from game_unifier.services.identifier import CatalogIdentifier, string_similarity

RECORDS = [
    GameMetadata(id="1", title="Doom", source="fixture", platform="DOS"),
    GameMetadata(id="2", title="Doom", source="fixture", platform="SNES"),
    GameMetadata(id="3", title="Quake II", source="fixture", platform="Windows"),
    GameMetadata(id="4", title="Super Mario World", source="fixture", platform="Super Nintendo"),
]


def make_detected(name: str, platform: str | None = None) -> DetectedGame:
    return DetectedGame(
        id=f"detected-{name}",
        name=name,
        game_type=GameType.ROM,
        location=GameLocation(repository_kind=RepositoryKind.LOCAL, path=name),
        confidence=0.95,
        detected_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        platform=platform,
    )


@pytest.fixture
def catalog() -> InMemoryMetadataCatalog:
    return InMemoryMetadataCatalog(RECORDS, source="fixture")


class TestMetadataCatalog:
    """Exact and fuzzy title search."""

    def test_exact_search_ignores_case(self, catalog: InMemoryMetadataCatalog) -> None:
        assert [r.id for r in catalog.search_exact("DOOM")] == ["1", "2"]

    def test_exact_search_filters_platform(self, catalog: InMemoryMetadataCatalog) -> None:
        assert [r.id for r in catalog.search_exact("doom", "snes")] == ["2"]
        assert catalog.search_exact("doom", "Windows") == []

    def test_fuzzy_search_ranks_best_first(self, catalog: InMemoryMetadataCatalog) -> None:
        results = catalog.search_fuzzy("Quake 2")

        assert results
        assert results[0].id == "3"

    def test_fuzzy_search_respects_limit(self, catalog: InMemoryMetadataCatalog) -> None:
        assert len(catalog.search_fuzzy("Doom", max_results=1)) == 1

    def test_fuzzy_search_blank_name(self, catalog: InMemoryMetadataCatalog) -> None:
        assert catalog.search_fuzzy("   ") == []

    def test_population(self) -> None:
        catalog = InMemoryMetadataCatalog()
        assert not catalog.is_populated()

        catalog.add(RECORDS[0])

        assert catalog.is_populated()

    def test_from_dicts(self) -> None:
        catalog = InMemoryMetadataCatalog.from_dicts(
            [
                {"id": 7, "title": "Heretic", "platform": "DOS", "genres": ["fps"]},
                {"id": "8", "title": "Hexen", "source": "igdb"},
            ],
            source="local-json",
        )

        heretic, hexen = catalog.search_fuzzy("Heretic")[0], catalog.search_exact("hexen")[0]
        assert heretic.id == "7"
        assert heretic.source == "local-json"
        assert heretic.genres == ("fps",)
        assert hexen.source == "igdb"

    @pytest.mark.parametrize("entry", [{"id": "1"}, {"title": "Doom"}, "Doom", {"id": "", "title": "Doom"}])
    def test_from_dicts_rejects_incomplete_entries(self, entry) -> None:
        with pytest.raises(ValidationError):
            InMemoryMetadataCatalog.from_dicts([entry])


class TestIdentify:
    """Pairing detections with catalog records."""

    def test_exact_match_on_platform(self, catalog: InMemoryMetadataCatalog) -> None:
        result = CatalogIdentifier(catalog).identify(make_detected("Doom", platform="SNES"))

        assert result.metadata is not None
        assert result.metadata.id == "2"
        assert result.match_confidence == 1.0
        assert result.source == "catalog"

    def test_platform_from_filename(self, catalog: InMemoryMetadataCatalog) -> None:
        result = CatalogIdentifier(catalog).identify(make_detected("Super Mario World (USA).sfc"))

        assert result.metadata is not None
        assert result.metadata.id == "4"
        assert result.match_confidence == 1.0

    def test_platform_without_match_falls_back_to_all_records(self, catalog: InMemoryMetadataCatalog) -> None:
        result = CatalogIdentifier(catalog).identify(make_detected("Doom", platform="Windows"))

        assert result.metadata is not None
        assert result.metadata.id == "1"
        assert result.match_confidence == pytest.approx(0.9 + 0.1 * string_similarity("Windows", "DOS"))

    def test_fuzzy_match(self, catalog: InMemoryMetadataCatalog) -> None:
        result = CatalogIdentifier(catalog).identify(make_detected("Quake 2", platform="Windows"))

        assert result.metadata is not None
        assert result.metadata.title == "Quake II"
        # 0.5 + 0.4 * 0.75 + 0.2
        assert result.match_confidence == pytest.approx(1.0)

    def test_no_candidates(self, catalog: InMemoryMetadataCatalog) -> None:
        result = CatalogIdentifier(catalog).identify(make_detected("Zzyzx Xylophone"))

        assert result.metadata is None
        assert result.match_confidence == 0.0

    def test_below_minimum_confidence_is_unidentified(self, catalog: InMemoryMetadataCatalog) -> None:
        identifier = CatalogIdentifier(catalog, IdentifierConfig(min_confidence=0.95))

        result = identifier.identify(make_detected("Quake 2"))

        assert result.metadata is None
        assert result.match_confidence == pytest.approx(0.8)

    def test_unpopulated_catalog(self) -> None:
        identifier = CatalogIdentifier(InMemoryMetadataCatalog())

        assert not identifier.is_ready()
        with pytest.raises(CatalogUnavailableError):
            identifier.identify(make_detected("Doom"))
        with pytest.raises(CatalogUnavailableError):
            identifier.search("Doom")


class TestConfidence:
    """Confidence formula."""

    def test_identical_names_without_platforms(self) -> None:
        assert CatalogIdentifier.match_confidence("Doom", "doom") == pytest.approx(0.9)

    def test_equal_platforms_add_bonus(self) -> None:
        assert CatalogIdentifier.match_confidence("Doom", "Doom II", "dos", "DOS") == pytest.approx(
            0.5 + 0.4 * string_similarity("Doom", "Doom II") + 0.2
        )

    def test_different_platforms_add_weighted_similarity(self) -> None:
        expected = 0.5 + 0.4 + 0.1 * string_similarity("SNES", "NES")

        assert CatalogIdentifier.match_confidence("Zelda", "Zelda", "SNES", "NES") == pytest.approx(expected)

    @given(st.text(max_size=20), st.text(max_size=20), st.one_of(st.none(), st.text(max_size=10)))
    def test_bounds(self, name: str, other: str, platform: str | None) -> None:
        confidence = CatalogIdentifier.match_confidence(name, other, platform, "DOS")

        assert 0.5 <= confidence <= 1.0
