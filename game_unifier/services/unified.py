"""Unified catalog: merges per-source detections into canonical games."""

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog

from ..models import (
    DriveSourceDetails,
    GameSource,
    IdentificationResult,
    IdentifiedGame,
    LocalSourceDetails,
    MatcherConfig,
    MatchStrategy,
    SourceDetails,
    StorefrontSourceDetails,
    UnifiedGame,
)
from .errors import ValidationError
from .matcher import GameMatcher, normalize_title

log = structlog.stdlib.get_logger()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class UnifiedCatalog:
    """In-memory set of unified games keyed by id.

    Not safe for concurrent mutation; callers that share one catalog
    across scans must serialise access themselves.
    """

    def __init__(self, config: MatcherConfig | None = None, matcher: GameMatcher | None = None) -> None:
        config = config or MatcherConfig()
        self.match_strategy = config.strategy
        self.match_threshold = config.threshold
        self.matcher = matcher or GameMatcher()
        self._games: dict[str, UnifiedGame] = {}

    def set_match_strategy(self, strategy: MatchStrategy, threshold: float | None = None) -> None:
        self.match_strategy = strategy
        if threshold is not None:
            self.match_threshold = threshold
        log.debug("Match strategy changed", strategy=strategy.value, threshold=self.match_threshold)

    def get_game(self, game_id: str) -> UnifiedGame | None:
        return self._games.get(game_id)

    def all_games(self) -> list[UnifiedGame]:
        return list(self._games.values())

    def find_by_title(self, title: str) -> list[UnifiedGame]:
        """Games whose consolidated title normalizes to the same string as ``title``."""
        wanted = normalize_title(title)
        return [game for game in self._games.values() if normalize_title(game.title) == wanted]

    def add_detected_game(self, source: GameSource) -> UnifiedGame:
        """Attach a source to the first unified game with a matching source, or create one."""
        existing = self._find_matching_game(source)
        if existing is not None:
            existing.sources.append(source)
            self._consolidate(existing)
            log.debug(
                "Source joined unified game",
                game_id=existing.id,
                source_id=source.source_id,
                sources=len(existing.sources),
            )
            return existing

        created_at = _now()
        game = UnifiedGame(
            id=f"unified-{uuid.uuid4().hex}",
            title=source.detected_game.name,
            sources=[source],
            created_at=created_at,
            updated_at=created_at,
        )
        self._consolidate(game)
        self._games[game.id] = game
        log.debug("Unified game created", game_id=game.id, title=game.title)
        return game

    def add_identification(
        self,
        game_id: str,
        identifier_id: str,
        result: IdentifiedGame,
        min_confidence: float = 0.0,
    ) -> UnifiedGame | None:
        """Record an identifier's verdict for a game.

        Results without metadata or below ``min_confidence`` are ignored:
        a low score means unidentified, not a weak match.
        """
        game = self._games.get(game_id)
        if game is None:
            return None
        if result.metadata is None or result.match_confidence < min_confidence:
            log.debug(
                "Identification ignored",
                game_id=game_id,
                identifier_id=identifier_id,
                confidence=result.match_confidence,
            )
            return game

        game.identifications.append(
            IdentificationResult(
                identifier_id=identifier_id,
                metadata=result.metadata,
                confidence=result.match_confidence,
                identified_at=_now(),
            )
        )
        self._consolidate(game)
        return game

    def merge_games(self, game_id1: str, game_id2: str) -> UnifiedGame | None:
        """Move every source and identification of game 2 into game 1 and delete game 2."""
        game1 = self._games.get(game_id1)
        game2 = self._games.get(game_id2)
        if game1 is None or game2 is None or game1 is game2:
            return None

        game1.sources.extend(game2.sources)
        game1.identifications.extend(game2.identifications)
        del self._games[game_id2]
        self._consolidate(game1)

        log.info("Unified games merged", game_id=game_id1, merged_id=game_id2, sources=len(game1.sources))
        return game1

    def split_source(self, game_id: str, source_id: str) -> UnifiedGame | None:
        """Detach one source and re-add it on its own.

        The detached source goes through ``add_detected_game`` again, so it
        may join a different existing game. A game left without sources is
        removed first.
        """
        game = self._games.get(game_id)
        if game is None:
            return None

        index = next((i for i, s in enumerate(game.sources) if s.source_id == source_id), None)
        if index is None:
            return None

        source = game.sources.pop(index)
        if game.sources:
            self._consolidate(game)
        else:
            del self._games[game_id]

        log.info("Source split from unified game", game_id=game_id, source_id=source_id)
        return self.add_detected_game(source)

    def update_user_fields(
        self,
        game_id: str,
        tags: list[str] | None = None,
        notes: str | None = None,
        user_rating: int | None = None,
        is_favorite: bool | None = None,
        is_hidden: bool | None = None,
    ) -> UnifiedGame | None:
        """Edit user-owned fields. Arguments left as None are unchanged.

        Raises:
            ValidationError: If ``user_rating`` is outside 1-5
        """
        game = self._games.get(game_id)
        if game is None:
            return None

        if user_rating is not None:
            if not 1 <= user_rating <= 5:
                raise ValidationError(
                    "User rating must be between 1 and 5",
                    field="user_rating",
                    value=user_rating,
                    constraints=["1 <= user_rating <= 5"],
                )
            game.user_rating = user_rating
        if tags is not None:
            game.tags = list(tags)
        if notes is not None:
            game.notes = notes
        if is_favorite is not None:
            game.is_favorite = is_favorite
        if is_hidden is not None:
            game.is_hidden = is_hidden

        game.updated_at = _now()
        return game

    def snapshot(self, game_id: str) -> dict[str, Any] | None:
        """JSON-ready view of one unified game."""
        game = self._games.get(game_id)
        if game is None:
            return None
        return self._to_dict(game)

    def snapshots(self) -> list[dict[str, Any]]:
        return [self._to_dict(game) for game in self._games.values()]

    def _find_matching_game(self, source: GameSource) -> UnifiedGame | None:
        for game in self._games.values():
            for existing in game.sources:
                if self.matcher.matches(
                    source.detected_game,
                    existing.detected_game,
                    self.match_strategy,
                    self.match_threshold,
                ):
                    return game
        return None

    @staticmethod
    def _consolidate(game: UnifiedGame) -> None:
        """Recompute every derived field from the current sources and identifications."""
        best = None
        for identification in game.identifications:
            if best is None or identification.confidence > best.confidence:
                best = identification

        source_platform = next(
            (s.detected_game.platform for s in game.sources if s.detected_game.platform),
            None,
        )

        if best is not None:
            game.title = best.metadata.title
            game.cover_url = best.metadata.cover_url
            game.platform = best.metadata.platform or source_platform
        else:
            game.title = game.sources[0].detected_game.name
            game.cover_url = None
            game.platform = source_platform

        game.is_installed = any(s.installed for s in game.sources)
        game.total_playtime = sum(s.playtime for s in game.sources)
        played = [s.last_played for s in game.sources if s.last_played is not None]
        game.last_played = max(played) if played else None
        game.updated_at = _now()

    @classmethod
    def _to_dict(cls, game: UnifiedGame) -> dict[str, Any]:
        return {
            "id": game.id,
            "title": game.title,
            "platform": game.platform,
            "cover_url": game.cover_url,
            "is_installed": game.is_installed,
            "total_playtime": game.total_playtime,
            "last_played": _isoformat(game.last_played),
            "tags": list(game.tags),
            "notes": game.notes,
            "user_rating": game.user_rating,
            "is_favorite": game.is_favorite,
            "is_hidden": game.is_hidden,
            "created_at": _isoformat(game.created_at),
            "updated_at": _isoformat(game.updated_at),
            "sources": [cls._source_to_dict(source) for source in game.sources],
            "identifications": [
                {
                    "identifier_id": i.identifier_id,
                    "metadata_id": i.metadata.id,
                    "title": i.metadata.title,
                    "platform": i.metadata.platform,
                    "source": i.metadata.source,
                    "confidence": round(i.confidence, 4),
                    "identified_at": _isoformat(i.identified_at),
                }
                for i in game.identifications
            ],
        }

    @staticmethod
    def _source_to_dict(source: GameSource) -> dict[str, Any]:
        detected = source.detected_game
        location = detected.location
        return {
            "source_id": source.source_id,
            "detected_id": detected.id,
            "name": detected.name,
            "game_type": detected.game_type.value,
            "platform": detected.platform,
            "confidence": detected.confidence,
            "repository_kind": location.repository_kind.value,
            "path": location.path,
            "is_archived": location.is_archived,
            "archive_parts": list(location.archive_parts),
            "archive_kind": location.archive_kind.value if location.archive_kind else None,
            "size": location.size,
            "installed": source.installed,
            "playtime": source.playtime,
            "last_played": _isoformat(source.last_played),
            "details": _details_to_dict(source.details),
        }


def _details_to_dict(details: SourceDetails | None) -> dict[str, Any] | None:
    if isinstance(details, LocalSourceDetails):
        return {"kind": "local", "root_path": details.root_path}
    if isinstance(details, DriveSourceDetails):
        return {"kind": "gdrive", "folder_id": details.folder_id}
    if isinstance(details, StorefrontSourceDetails):
        return {"kind": "storefront", "store": details.store, "store_game_id": details.store_game_id}
    return None
