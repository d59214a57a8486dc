"""Name extraction data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtractedName:
    """A filename decomposed into a clean title plus side-channel attributes."""
    clean_name: str
    confidence: float  # Never above 0.95
    platform: str | None = None
    region: str | None = None
    version: str | None = None
    languages: tuple[str, ...] = field(default_factory=tuple)
    is_part: bool = False
    part_number: int | None = None
