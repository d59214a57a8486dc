"""Configuration data models."""

from dataclasses import dataclass, field
from enum import Enum


class MatchStrategy(Enum):
    """How two items are decided to denote the same game."""
    EXACT_TITLE = "exact_title"
    NORMALIZED_TITLE = "normalized_title"
    FUZZY_TITLE = "fuzzy_title"
    EXTERNAL_ID = "external_id"
    MANUAL = "manual"


@dataclass(frozen=True)
class ScannerConfig:
    """Repository traversal settings."""
    max_depth: int = 10
    include_hidden: bool = False
    exclude_patterns: tuple[str, ...] = field(default_factory=tuple)
    parallel: bool = False
    max_parallel: int = 5
    max_archive_parts: int = 99  # Existence probes per naming family


@dataclass(frozen=True)
class MatcherConfig:
    """Identity matching settings for the unified catalog."""
    strategy: MatchStrategy = MatchStrategy.FUZZY_TITLE
    threshold: float = 0.9


@dataclass(frozen=True)
class IdentifierConfig:
    """Catalog identification settings."""
    min_confidence: float = 0.5
    max_results: int = 10


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    identifier: IdentifierConfig = field(default_factory=IdentifierConfig)
    log_level: str = "INFO"
