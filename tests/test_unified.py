"""Tests for the unified catalog."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from game_unifier.models import (
    DetectedGame,
    DriveSourceDetails,
    GameLocation,
    GameMetadata,
    GameSource,
    GameType,
    IdentifiedGame,
    LocalSourceDetails,
    MatcherConfig,
    MatchStrategy,
    RepositoryKind,
)
from game_unifier.services.errors import ValidationError
from game_unifier.services.unified import UnifiedCatalog

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_source(
    source_id: str,
    name: str,
    platform: str | None = None,
    installed: bool = False,
    playtime: int = 0,
    last_played: datetime | None = None,
) -> GameSource:
    detected = DetectedGame(
        id=f"detected-{source_id}",
        name=name,
        game_type=GameType.PORTABLE_GAME,
        location=GameLocation(repository_kind=RepositoryKind.LOCAL, path=f"{name}/{source_id}.exe"),
        confidence=0.7,
        detected_at=EPOCH,
        platform=platform,
    )
    return GameSource(
        source_id=source_id,
        detected_game=detected,
        installed=installed,
        playtime=playtime,
        last_played=last_played,
        details=LocalSourceDetails(root_path="/games"),
    )


def identified(source: GameSource, title: str, confidence: float, **metadata) -> IdentifiedGame:
    return IdentifiedGame(
        detected_game=source.detected_game,
        match_confidence=confidence,
        metadata=GameMetadata(id=f"meta-{title}", title=title, source="catalog", **metadata),
        source="catalog",
    )


def normalized_catalog() -> UnifiedCatalog:
    return UnifiedCatalog(MatcherConfig(strategy=MatchStrategy.NORMALIZED_TITLE))


class TestAddDetectedGame:
    """Attaching sources to unified games."""

    def test_normalizing_equal_names_share_a_game(self) -> None:
        catalog = normalized_catalog()

        first = catalog.add_detected_game(make_source("local:1", "The Game!"))
        second = catalog.add_detected_game(make_source("gdrive:2", "the-game"))

        assert first is second
        assert len(catalog.all_games()) == 1
        assert [s.source_id for s in first.sources] == ["local:1", "gdrive:2"]
        assert first.title == "The Game!"

    def test_different_names_create_games(self) -> None:
        catalog = normalized_catalog()

        catalog.add_detected_game(make_source("1", "Doom"))
        catalog.add_detected_game(make_source("2", "Quake"))

        assert len(catalog.all_games()) == 2
        assert all(game.id.startswith("unified-") for game in catalog.all_games())

    def test_fuzzy_strategy_is_default(self) -> None:
        catalog = UnifiedCatalog()

        catalog.add_detected_game(make_source("1", "Alone in the Dark"))
        catalog.add_detected_game(make_source("2", "Alone in the Dork"))

        assert len(catalog.all_games()) == 1

    def test_strategy_can_be_changed(self) -> None:
        catalog = UnifiedCatalog()
        catalog.set_match_strategy(MatchStrategy.EXACT_TITLE)

        catalog.add_detected_game(make_source("1", "Doom"))
        catalog.add_detected_game(make_source("2", "DOOM"))

        assert len(catalog.all_games()) == 2
        assert catalog.match_threshold == 0.9

    def test_find_by_title(self) -> None:
        catalog = normalized_catalog()
        game = catalog.add_detected_game(make_source("1", "Half-Life"))

        assert catalog.find_by_title("half life") == [game]
        assert catalog.find_by_title("Quake") == []


class TestConsolidation:
    """Derived fields follow the sources and identifications."""

    @given(st.lists(st.booleans(), min_size=1, max_size=6))
    def test_installed_when_any_source_is(self, flags: list[bool]) -> None:
        catalog = normalized_catalog()
        for index, flag in enumerate(flags):
            game = catalog.add_detected_game(make_source(str(index), "Doom", installed=flag))

        assert game.is_installed == any(flags)

    def test_playtime_and_last_played(self) -> None:
        catalog = normalized_catalog()
        later = EPOCH + timedelta(days=3)

        catalog.add_detected_game(make_source("1", "Doom", playtime=30, last_played=EPOCH))
        catalog.add_detected_game(make_source("2", "Doom", playtime=45))
        game = catalog.add_detected_game(make_source("3", "Doom", playtime=5, last_played=later))

        assert game.total_playtime == 80
        assert game.last_played == later

    def test_platform_falls_back_to_sources(self) -> None:
        catalog = normalized_catalog()

        catalog.add_detected_game(make_source("1", "Doom"))
        game = catalog.add_detected_game(make_source("2", "Doom", platform="DOS"))

        assert game.platform == "DOS"

    def test_best_identification_sets_title_and_cover(self) -> None:
        catalog = normalized_catalog()
        source = make_source("1", "doom", platform="DOS")
        game = catalog.add_detected_game(source)

        catalog.add_identification(game.id, "low", identified(source, "Doom II", 0.6))
        catalog.add_identification(
            game.id, "high", identified(source, "DOOM", 0.9, cover_url="https://img/doom.jpg")
        )

        assert game.title == "DOOM"
        assert game.cover_url == "https://img/doom.jpg"
        assert game.platform == "DOS"
        assert len(game.identifications) == 2


class TestIdentification:
    """Recording identifier verdicts."""

    def test_below_minimum_is_ignored(self) -> None:
        catalog = normalized_catalog()
        source = make_source("1", "doom")
        game = catalog.add_detected_game(source)

        result = catalog.add_identification(game.id, "catalog", identified(source, "Doom", 0.3), min_confidence=0.5)

        assert result is game
        assert game.identifications == []
        assert game.title == "doom"

    def test_missing_metadata_is_ignored(self) -> None:
        catalog = normalized_catalog()
        source = make_source("1", "doom")
        game = catalog.add_detected_game(source)

        catalog.add_identification(
            game.id,
            "catalog",
            IdentifiedGame(detected_game=source.detected_game, match_confidence=0.0),
        )

        assert game.identifications == []

    def test_unknown_game(self) -> None:
        source = make_source("1", "doom")

        assert normalized_catalog().add_identification("missing", "catalog", identified(source, "Doom", 1.0)) is None


class TestMergeAndSplit:
    """Manual corrections."""

    def test_merge_moves_sources_and_deletes_second(self) -> None:
        catalog = normalized_catalog()
        a = catalog.add_detected_game(make_source("1", "Doom"))
        b = catalog.add_detected_game(make_source("2", "Ultimate Doom", installed=True))
        catalog.add_detected_game(make_source("3", "Ultimate Doom"))

        merged = catalog.merge_games(a.id, b.id)

        assert merged is a
        assert catalog.get_game(b.id) is None
        assert len(a.sources) == 3
        assert a.is_installed
        assert len(catalog.all_games()) == 1

    def test_merge_rejects_unknown_or_same_ids(self) -> None:
        catalog = normalized_catalog()
        a = catalog.add_detected_game(make_source("1", "Doom"))

        assert catalog.merge_games(a.id, a.id) is None
        assert catalog.merge_games(a.id, "missing") is None
        assert catalog.get_game(a.id) is a

    def test_split_creates_new_game(self) -> None:
        catalog = UnifiedCatalog(MatcherConfig(strategy=MatchStrategy.EXACT_TITLE))
        a = catalog.add_detected_game(make_source("1", "Doom"))
        b = catalog.add_detected_game(make_source("2", "Doom 64"))
        catalog.merge_games(a.id, b.id)

        split = catalog.split_source(a.id, "2")

        assert split is not None
        assert split is not a
        assert [s.source_id for s in a.sources] == ["1"]
        assert [s.source_id for s in split.sources] == ["2"]
        assert len(catalog.all_games()) == 2

    def test_split_may_rejoin_matching_game(self) -> None:
        catalog = normalized_catalog()
        a = catalog.add_detected_game(make_source("1", "Doom"))
        catalog.add_detected_game(make_source("2", "doom"))

        split = catalog.split_source(a.id, "2")

        assert split is a
        assert len(a.sources) == 2

    def test_split_last_source_removes_old_game(self) -> None:
        catalog = normalized_catalog()
        a = catalog.add_detected_game(make_source("1", "Doom"))

        split = catalog.split_source(a.id, "1")

        assert split is not None
        assert catalog.get_game(a.id) is None
        assert catalog.all_games() == [split]

    def test_split_unknown_source(self) -> None:
        catalog = normalized_catalog()
        a = catalog.add_detected_game(make_source("1", "Doom"))

        assert catalog.split_source(a.id, "nope") is None
        assert catalog.split_source("missing", "1") is None


class TestUserFields:
    """User-owned fields are never recomputed."""

    def test_update_and_keep_unchanged(self) -> None:
        catalog = normalized_catalog()
        game = catalog.add_detected_game(make_source("1", "Doom"))

        catalog.update_user_fields(game.id, tags=["fps"], user_rating=5, is_favorite=True)
        catalog.update_user_fields(game.id, notes="finish episode 4")
        catalog.add_detected_game(make_source("2", "doom"))

        assert game.tags == ["fps"]
        assert game.user_rating == 5
        assert game.is_favorite
        assert game.notes == "finish episode 4"
        assert not game.is_hidden

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range(self, rating: int) -> None:
        catalog = normalized_catalog()
        game = catalog.add_detected_game(make_source("1", "Doom"))

        with pytest.raises(ValidationError) as exc_info:
            catalog.update_user_fields(game.id, user_rating=rating)

        assert exc_info.value.field == "user_rating"
        assert game.user_rating is None

    def test_unknown_game(self) -> None:
        assert normalized_catalog().update_user_fields("missing", notes="x") is None


class TestSnapshots:
    """JSON-ready views."""

    def test_snapshot_contents(self) -> None:
        catalog = normalized_catalog()
        source = make_source("local:1", "Doom", platform="DOS", installed=True, playtime=12)
        drive = make_source("gdrive:2", "doom")
        drive.details = DriveSourceDetails(folder_id="abc")
        game = catalog.add_detected_game(source)
        catalog.add_detected_game(drive)
        catalog.add_identification(game.id, "catalog", identified(source, "DOOM", 0.87654))

        snapshot = catalog.snapshot(game.id)

        assert snapshot is not None
        assert snapshot["title"] == "DOOM"
        assert snapshot["platform"] == "DOS"
        assert snapshot["is_installed"] is True
        assert snapshot["total_playtime"] == 12
        assert [s["details"] for s in snapshot["sources"]] == [
            {"kind": "local", "root_path": "/games"},
            {"kind": "gdrive", "folder_id": "abc"},
        ]
        assert snapshot["sources"][0]["game_type"] == "portable_game"
        assert snapshot["identifications"][0]["confidence"] == 0.8765
        assert catalog.snapshots() == [snapshot]

    def test_snapshot_unknown_game(self) -> None:
        assert normalized_catalog().snapshot("missing") is None
