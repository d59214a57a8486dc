"""Configuration service for managing application settings."""

import json
from pathlib import Path
from typing import Any

import structlog

from ..models import AppConfig, IdentifierConfig, MatcherConfig, MatchStrategy, ScannerConfig
from .errors import ConfigurationError

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for managing application configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".config" / "game-unifier" / "config.json"
        log.info("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> AppConfig:
        """Load configuration from file or return default configuration."""
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data: dict[str, Any] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return AppConfig()

            log.info("Configuration loaded successfully")
            return config

        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return AppConfig()

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file.

        Raises:
            ConfigurationError: If the configuration does not validate
        """
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            # Messages read "<setting> must ...", so the first word names the setting
            setting, _, expected = validation_result.errors[0].partition(" ")
            raise ConfigurationError(
                f"Invalid configuration: {', '.join(validation_result.errors)}",
                setting=setting,
                expected=expected,
            )

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._config_to_dict(config), f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully")

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []
        scanner = config.scanner

        if not isinstance(scanner.max_depth, int) or scanner.max_depth < 0:
            errors.append("scanner.max_depth must be a non-negative integer")

        if not isinstance(scanner.max_parallel, int) or scanner.max_parallel < 1:
            errors.append("scanner.max_parallel must be a positive integer")
        elif scanner.max_parallel > 64:
            errors.append("scanner.max_parallel should not exceed 64")

        if not isinstance(scanner.max_archive_parts, int) or scanner.max_archive_parts < 2:
            errors.append("scanner.max_archive_parts must be at least 2")
        elif scanner.max_archive_parts > 999:
            errors.append("scanner.max_archive_parts should not exceed 999")

        if not all(isinstance(p, str) and p for p in scanner.exclude_patterns):
            errors.append("scanner.exclude_patterns must contain non-empty strings")

        if not isinstance(config.matcher.strategy, MatchStrategy):
            errors.append("matcher.strategy must be a known match strategy")

        if not isinstance(config.matcher.threshold, (int, float)) or not 0.0 <= config.matcher.threshold <= 1.0:
            errors.append("matcher.threshold must be between 0 and 1")

        identifier = config.identifier
        if not isinstance(identifier.min_confidence, (int, float)) or not 0.0 <= identifier.min_confidence <= 1.0:
            errors.append("identifier.min_confidence must be between 0 and 1")

        if not isinstance(identifier.max_results, int) or identifier.max_results < 1:
            errors.append("identifier.max_results must be a positive integer")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}")

        return ValidationResult(len(errors) == 0, errors)

    def _config_to_dict(self, config: AppConfig) -> dict[str, Any]:
        """Convert AppConfig to dictionary for JSON serialization."""
        return {
            "log_level": config.log_level,
            "scanner": {
                "max_depth": config.scanner.max_depth,
                "include_hidden": config.scanner.include_hidden,
                "exclude_patterns": list(config.scanner.exclude_patterns),
                "parallel": config.scanner.parallel,
                "max_parallel": config.scanner.max_parallel,
                "max_archive_parts": config.scanner.max_archive_parts,
            },
            "matcher": {
                "strategy": config.matcher.strategy.value,
                "threshold": config.matcher.threshold,
            },
            "identifier": {
                "min_confidence": config.identifier.min_confidence,
                "max_results": config.identifier.max_results,
            },
        }

    def _dict_to_config(self, data: dict[str, Any]) -> AppConfig:
        """Convert dictionary to AppConfig, filling missing sections with defaults."""
        defaults = AppConfig()
        scanner_raw = data.get("scanner") or {}
        matcher_raw = data.get("matcher") or {}
        identifier_raw = data.get("identifier") or {}

        scanner = ScannerConfig(
            max_depth=int(scanner_raw.get("max_depth", defaults.scanner.max_depth)),
            include_hidden=bool(scanner_raw.get("include_hidden", defaults.scanner.include_hidden)),
            exclude_patterns=tuple(scanner_raw.get("exclude_patterns", defaults.scanner.exclude_patterns)),
            parallel=bool(scanner_raw.get("parallel", defaults.scanner.parallel)),
            max_parallel=int(scanner_raw.get("max_parallel", defaults.scanner.max_parallel)),
            max_archive_parts=int(scanner_raw.get("max_archive_parts", defaults.scanner.max_archive_parts)),
        )
        matcher = MatcherConfig(
            strategy=MatchStrategy(matcher_raw.get("strategy", defaults.matcher.strategy.value)),
            threshold=float(matcher_raw.get("threshold", defaults.matcher.threshold)),
        )
        identifier = IdentifierConfig(
            min_confidence=float(identifier_raw.get("min_confidence", defaults.identifier.min_confidence)),
            max_results=int(identifier_raw.get("max_results", defaults.identifier.max_results)),
        )

        log_level_raw = data.get("log_level", defaults.log_level)
        return AppConfig(
            scanner=scanner,
            matcher=matcher,
            identifier=identifier,
            log_level=str(log_level_raw).upper() if isinstance(log_level_raw, str) else defaults.log_level,
        )
