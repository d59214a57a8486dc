"""Identity matching: decides whether two detections denote the same game."""

import re
from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from ..models import DetectedGame, MatchStrategy

DEFAULT_THRESHOLD = 0.9

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def normalize_title(title: str) -> str:
    """Lowercase a title and drop everything but ASCII letters and digits."""
    return _NON_ALPHANUMERIC.sub("", title.lower())


def title_similarity(title1: str, title2: str) -> float:
    """Edit-distance similarity of two titles after normalization, in [0, 1]."""
    norm1 = normalize_title(title1)
    norm2 = normalize_title(title2)

    if norm1 == norm2:
        return 1.0

    distance = Levenshtein.distance(norm1, norm2)
    return 1 - distance / max(len(norm1), len(norm2))


class GameMatcher:
    """Applies a match strategy to pairs of detected games."""

    normalize_title = staticmethod(normalize_title)
    title_similarity = staticmethod(title_similarity)

    def matches(
        self,
        game1: DetectedGame,
        game2: DetectedGame,
        strategy: MatchStrategy = MatchStrategy.NORMALIZED_TITLE,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> bool:
        if strategy == MatchStrategy.EXACT_TITLE:
            return game1.name == game2.name
        if strategy == MatchStrategy.NORMALIZED_TITLE:
            return normalize_title(game1.name) == normalize_title(game2.name)
        if strategy == MatchStrategy.FUZZY_TITLE:
            return title_similarity(game1.name, game2.name) >= threshold
        if strategy == MatchStrategy.EXTERNAL_ID:
            shared = game1.external_ids.shared_with(game2.external_ids)
            if shared is None:
                return False
            return getattr(game1.external_ids, shared) == getattr(game2.external_ids, shared)
        # Manual links are made by the user, never inferred
        return False

    def score(self, game1: DetectedGame, game2: DetectedGame, strategy: MatchStrategy) -> float:
        """Similarity for the fuzzy strategy; 1.0 or 0.0 for the others."""
        if strategy == MatchStrategy.FUZZY_TITLE:
            return title_similarity(game1.name, game2.name)
        return 1.0 if self.matches(game1, game2, strategy) else 0.0

    def find_best_match(
        self,
        target: DetectedGame,
        candidates: Sequence[DetectedGame],
        strategy: MatchStrategy = MatchStrategy.FUZZY_TITLE,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> DetectedGame | None:
        """Find the candidate that best matches ``target``.

        The fuzzy strategy returns the highest similarity at or above
        ``threshold`` (earliest candidate on ties). Every other strategy
        returns the first candidate that matches.
        """
        if strategy != MatchStrategy.FUZZY_TITLE:
            return next((c for c in candidates if self.matches(target, c, strategy, threshold)), None)

        best: DetectedGame | None = None
        best_score = 0.0
        for candidate in candidates:
            similarity = title_similarity(target.name, candidate.name)
            if similarity >= threshold and (best is None or similarity > best_score):
                best = candidate
                best_score = similarity
        return best
