"""Name extractor: turns release filenames into clean game titles.

Handles No-Intro style ROM names (``Game (USA) (En,Fr).sfc``), GOG
installers (``setup_game_1.0_(12345).exe``) and multi-part archives
(``game.part2.rar``, ``game.z01``).
"""

import re

from ..models import ExtractedName
from .storage import extension_of

# Checked against the full filename, before any stripping
PLATFORM_PATTERNS: dict[str, re.Pattern[str]] = {
    "PlayStation 3": re.compile(r"\.(?:ps3|psn)(?=\.|$)", re.IGNORECASE),
    "Super Nintendo": re.compile(r"\.(?:snes|sfc)(?=\.|$)", re.IGNORECASE),
    "Nintendo Entertainment System": re.compile(r"\.nes(?=\.|$)", re.IGNORECASE),
    "Game Boy": re.compile(r"\.(?:gb|gbc)(?=\.|$)", re.IGNORECASE),
    "Game Boy Advance": re.compile(r"\.gba(?=\.|$)", re.IGNORECASE),
    "Nintendo DS": re.compile(r"\.nds(?=\.|$)", re.IGNORECASE),
    "Nintendo 64": re.compile(r"\.n64(?=\.|$)", re.IGNORECASE),
    "Sega Genesis": re.compile(r"\.(?:gen|md|smd)(?=\.|$)", re.IGNORECASE),
    "Sega Master System": re.compile(r"\.sms(?=\.|$)", re.IGNORECASE),
    "Sega Game Gear": re.compile(r"\.gg(?=\.|$)", re.IGNORECASE),
    "Atari 2600": re.compile(r"\.a26(?=\.|$)", re.IGNORECASE),
    "DOS": re.compile(r"\.(?:bat|com)$", re.IGNORECASE),
}

WINDOWS_INSTALLER = re.compile(r"\.(?:exe|msi)$", re.IGNORECASE)

# No-Intro region codes
REGION_PATTERNS: dict[str, re.Pattern[str]] = {
    "USA": re.compile(r"\((?:U|USA|US)\)", re.IGNORECASE),
    "Europe": re.compile(r"\((?:E|EUR|Europe)\)", re.IGNORECASE),
    "Japan": re.compile(r"\((?:J|JPN|Japan)\)", re.IGNORECASE),
    "World": re.compile(r"\((?:W|World)\)", re.IGNORECASE),
    "Korea": re.compile(r"\((?:K|Korea)\)", re.IGNORECASE),
    "Brazil": re.compile(r"\((?:B|Brazil)\)", re.IGNORECASE),
    "China": re.compile(r"\((?:C|China)\)", re.IGNORECASE),
}

_LANGUAGE = r"(?:En|Ja|Fr|De|Es|It|Pt|Ru|Ko|Zh)"
LANGUAGE_PATTERN = re.compile(rf"\({_LANGUAGE}(?:,{_LANGUAGE})*\)", re.IGNORECASE)

# v1.0, 1.0, 1.0.5, 1.0.5-gog1, v1.922.0.0
VERSION_PATTERN = re.compile(r"(?:^|[_\s.-])v?(\d+\.\d+(?:\.\d+)*(?:-gog\d*)?)", re.IGNORECASE)

# Language codes GOG appends to installer names (setup_game_1.0_cs_(123).exe)
INSTALLER_LANGUAGE_CODES = frozenset({
    "ar", "cs", "da", "de", "el", "en", "es", "fi", "fr", "hu", "it", "ja",
    "ko", "nl", "no", "pl", "pt", "ro", "ru", "sk", "sv", "th", "tr", "uk", "zh",
})

DISTRIBUTOR_PATTERNS = [
    re.compile(r"_\(\d+\)"),
    re.compile(r"_\((?:64|32)bit\)", re.IGNORECASE),
    re.compile(r"-gog\d*", re.IGNORECASE),
]
TRAILING_LANGUAGE = re.compile(r"_([a-z]{2})$", re.IGNORECASE)

# Whole prefix words only, longest first; "setup_game_" loses both words
PREFIX_PATTERN = re.compile(r"^(?:(?:installer|install|setup|game)[_\-\s]+)+", re.IGNORECASE)

SPLIT_EXTENSION = re.compile(r"^(?:z(\d{2})|r(\d{2})|(\d{3}))$", re.IGNORECASE)
PART_SUFFIX = re.compile(r"\.part(\d+)$", re.IGNORECASE)
BIN_PART_SUFFIX = re.compile(r"-(\d+)$")
INNER_ARCHIVE_EXTENSION = re.compile(r"\.(?:zip|7z|rar|tar)$", re.IGNORECASE)

PLATFORM_BONUS = 0.2
REGION_BONUS = 0.15
VERSION_BONUS = 0.1
PART_BONUS = 0.05
BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95


class NameExtractor:
    """Extracts a clean title and side attributes from a filename. Stateless."""

    def extract(self, filename: str) -> ExtractedName:
        name = self._remove_extension(filename)

        part_number, name = self._extract_part_number(filename, name)
        platform = self._extract_platform(filename)

        # Distributor decorations go first so they cannot mask region and language tags
        name = self._remove_distributor_patterns(name)

        region = None
        for code, pattern in REGION_PATTERNS.items():
            if pattern.search(name):
                region = code
                name = pattern.sub("", name, count=1).strip()
                break

        languages: tuple[str, ...] = ()
        language_match = LANGUAGE_PATTERN.search(name)
        if language_match:
            languages = tuple(code.strip() for code in language_match.group(0).strip("()").split(","))
            name = LANGUAGE_PATTERN.sub("", name, count=1).strip()

        version = None
        version_match = VERSION_PATTERN.search(name)
        if version_match:
            version = version_match.group(1)
            name = VERSION_PATTERN.sub("", name, count=1).strip()

        name = self._remove_prefixes(name)
        name = self._collapse_trailing_numbers(name)
        name = self._clean_name(name)

        is_part = part_number is not None
        return ExtractedName(
            clean_name=name,
            confidence=self._calculate_confidence(
                has_platform=platform is not None,
                has_region=region is not None,
                has_version=version is not None,
                is_part=is_part,
            ),
            platform=platform,
            region=region,
            version=version,
            languages=languages,
            is_part=is_part,
            part_number=part_number,
        )

    @staticmethod
    def _remove_extension(filename: str) -> str:
        stem, dot, _ = filename.rpartition(".")
        return stem if dot and stem else filename

    @staticmethod
    def _extract_part_number(filename: str, name: str) -> tuple[int | None, str]:
        """Detect a multi-part suffix and return (part number, name without it)."""
        extension = extension_of(filename)

        split = SPLIT_EXTENSION.match(extension)
        if split:
            number = next(group for group in split.groups() if group is not None)
            return int(number), INNER_ARCHIVE_EXTENSION.sub("", name)

        match = PART_SUFFIX.search(name)
        if match:
            return int(match.group(1)), name[: match.start()]

        if extension == "bin":
            match = BIN_PART_SUFFIX.search(name)
            if match:
                return int(match.group(1)), name[: match.start()]

        return None, name

    @staticmethod
    def _extract_platform(filename: str) -> str | None:
        for platform, pattern in PLATFORM_PATTERNS.items():
            if pattern.search(filename):
                return platform
        if WINDOWS_INSTALLER.search(filename):
            return "Windows"
        return None

    @staticmethod
    def _remove_distributor_patterns(name: str) -> str:
        for pattern in DISTRIBUTOR_PATTERNS:
            name = pattern.sub("", name)

        # Only known language codes, so titles ending in "_ii" or "_hd" survive
        match = TRAILING_LANGUAGE.search(name)
        if match and match.group(1).lower() in INSTALLER_LANGUAGE_CODES:
            name = name[: match.start()]

        return name.strip()

    @staticmethod
    def _remove_prefixes(name: str) -> str:
        return PREFIX_PATTERN.sub("", name)

    @staticmethod
    def _collapse_trailing_numbers(name: str) -> str:
        """Reduce two or more trailing 1-2 digit tokens to the first of them.

        "Dark 3 1 0" becomes "Dark 3"; a single trailing number is kept.
        """
        words = re.split(r"[\s_]+", name)

        trailing = 0
        for word in reversed(words):
            if not re.fullmatch(r"\d{1,2}", word):
                break
            trailing += 1

        if trailing >= 2:
            words = words[: len(words) - trailing + 1]

        return " ".join(words)

    def _clean_name(self, name: str) -> str:
        name = re.sub(r"[_.]+", " ", name)
        name = re.sub(r"\s*\([^)]*\)\s*", " ", name)
        name = re.sub(r"\s*\[[^\]]*\]\s*", " ", name)
        return self._capitalize_title(" ".join(name.split()))

    @staticmethod
    def _capitalize_title(title: str) -> str:
        words = []
        for word in title.split(" "):
            if not word or (word.isupper() and len(word) > 1):
                words.append(word)
            else:
                words.append(word[0].upper() + word[1:].lower())
        return " ".join(words)

    @staticmethod
    def _calculate_confidence(has_platform: bool, has_region: bool, has_version: bool, is_part: bool) -> float:
        confidence = BASE_CONFIDENCE
        if has_platform:
            confidence += PLATFORM_BONUS
        if has_region:
            confidence += REGION_BONUS
        if has_version:
            confidence += VERSION_BONUS
        if is_part:
            confidence += PART_BONUS
        return min(confidence, MAX_CONFIDENCE)
