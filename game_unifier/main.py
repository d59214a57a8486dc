"""Command-line entry point for the game unifier.

This module provides:
- Command-line argument parsing
- Service construction and dependency injection
- The scan, identify and unify pipeline behind ``game-unifier scan``
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from game_unifier.models import (
    AppConfig,
    GameSource,
    LocalSourceDetails,
    MatchStrategy,
    ScanResult,
)
from game_unifier.services.catalog import InMemoryMetadataCatalog
from game_unifier.services.config import ConfigurationService
from game_unifier.services.errors import ErrorHandlingService, ScanRootError, ValidationError
from game_unifier.services.filesystem import SnapshotStore
from game_unifier.services.identifier import CatalogIdentifier
from game_unifier.services.logging import setup_logging
from game_unifier.services.scanner import RepositoryScanner
from game_unifier.services.storage import LocalStorageAdapter
from game_unifier.services.unified import UnifiedCatalog

log = structlog.stdlib.get_logger()

VERSION = "0.1.0"


class ApplicationContext:
    """Container for application services and state.

    Services are created lazily and share one configuration.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        strategy: MatchStrategy | None = None,
        threshold: float | None = None,
    ) -> None:
        self._config_path = config_path
        self._strategy = strategy
        self._threshold = threshold

        self._config_service: ConfigurationService | None = None
        self._config: AppConfig | None = None
        self._error_service: ErrorHandlingService | None = None
        self._snapshot_store: SnapshotStore | None = None
        self._unified: UnifiedCatalog | None = None

    @property
    def config_service(self) -> ConfigurationService:
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self._config = self.config_service.load_config()
        return self._config

    @property
    def error_service(self) -> ErrorHandlingService:
        if self._error_service is None:
            self._error_service = ErrorHandlingService()
        return self._error_service

    @property
    def snapshot_store(self) -> SnapshotStore:
        if self._snapshot_store is None:
            self._snapshot_store = SnapshotStore()
        return self._snapshot_store

    @property
    def unified(self) -> UnifiedCatalog:
        """The unified catalog, with command-line overrides of the match strategy applied."""
        if self._unified is None:
            self._unified = UnifiedCatalog(self.config.matcher)
            if self._strategy is not None or self._threshold is not None:
                self._unified.set_match_strategy(self._strategy or self.config.matcher.strategy, self._threshold)
        return self._unified

    def scanner_for(self, root: Path) -> RepositoryScanner:
        return RepositoryScanner(LocalStorageAdapter(root), self.config.scanner)

    async def load_identifier(self, catalog_path: Path) -> CatalogIdentifier:
        """Build an identifier from a JSON catalog: a list of records or ``{"games": [...]}``."""
        data = await self.snapshot_store.load_json(catalog_path)
        entries = data.get("games", []) if isinstance(data, dict) else data
        catalog = InMemoryMetadataCatalog.from_dicts(entries, source=catalog_path.stem)
        return CatalogIdentifier(catalog, self.config.identifier)


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        paths: list[Path],
        catalog: Path | None,
        strategy: MatchStrategy | None,
        threshold: float | None,
        output: Path | None,
        config: Path | None,
        log_level: str,
        log_dir: Path | None,
        quiet: bool = False,
    ) -> None:
        self.paths = paths
        self.catalog = catalog
        self.strategy = strategy
        self.threshold = threshold
        self.output = output
        self.config = config
        self.log_level = log_level
        self.log_dir = log_dir
        self.quiet = quiet


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="game-unifier",
        description="Detect games in local repositories and unify them into one catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  game-unifier scan ~/Games                          Scan one folder
  game-unifier scan ~/Games /mnt/nas/roms            Scan and unify several folders
  game-unifier scan ~/Games --catalog catalog.json   Identify games against a catalog
  game-unifier scan ~/Games --output library.json    Write snapshots to a file
        """,
    )

    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    scan = subparsers.add_parser("scan", help="Scan repositories and print unified games")

    _ = scan.add_argument("paths", nargs="+", type=Path, help="Repository folders to scan")
    _ = scan.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="JSON metadata catalog used to identify detected games",
    )
    _ = scan.add_argument(
        "--strategy",
        choices=[s.value for s in MatchStrategy],
        default=None,
        help="Match strategy for unifying games (default: from config, fuzzy_title)",
    )
    _ = scan.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Similarity threshold for fuzzy matching (default: from config, 0.9)",
    )
    _ = scan.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the snapshot document to this file instead of stdout",
    )
    _ = scan.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.config/game-unifier/config.json)",
    )
    _ = scan.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level (default: from config, INFO)",
    )
    _ = scan.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: console only)",
    )
    _ = scan.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Disable console logging (log files are still written with --log-dir)",
    )

    ns = parser.parse_args(argv)

    if ns.threshold is not None and not 0.0 <= ns.threshold <= 1.0:
        parser.error("--threshold must be between 0 and 1")

    return ParsedArgs(
        paths=list(ns.paths),
        catalog=ns.catalog,
        strategy=MatchStrategy(ns.strategy) if ns.strategy else None,
        threshold=ns.threshold,
        output=ns.output,
        config=ns.config,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
        quiet=ns.quiet,
    )


def summarize_scan(result: ScanResult) -> dict[str, Any]:
    return {
        "repository_path": result.repository_path,
        "games": len(result.games),
        "files_scanned": result.files_scanned,
        "directories_scanned": result.directories_scanned,
        "duration": round(result.duration, 3),
        "errors": [
            {"path": error.path, "message": error.message, "code": error.code}
            for error in result.errors
        ],
    }


async def run_scan(context: ApplicationContext, args: ParsedArgs) -> int:
    """Scan every path, identify and unify the detections, then emit snapshots.

    Returns:
        Exit code (0 when every root was scanned, 1 otherwise)
    """
    identifier = await context.load_identifier(args.catalog) if args.catalog else None
    min_confidence = context.config.identifier.min_confidence
    exit_code = 0
    scans: list[dict[str, Any]] = []

    for path in args.paths:
        root = path.expanduser()
        try:
            result = await context.scanner_for(root).scan()
        except ScanRootError as e:
            error = context.error_service.handle_error(e, "scan", "main", {"path": str(root)})
            print(context.error_service.create_user_message(error), file=sys.stderr)
            exit_code = 1
            continue

        scans.append({**summarize_scan(result), "repository_path": str(root)})
        details = LocalSourceDetails(root_path=str(root.resolve()))

        for detected in result.games:
            source = GameSource(
                source_id=f"{detected.location.repository_kind.value}:{detected.id}",
                detected_game=detected,
                details=details,
            )
            unified = context.unified.add_detected_game(source)
            if identifier is not None:
                context.unified.add_identification(
                    unified.id,
                    identifier.identifier_id,
                    identifier.identify(detected),
                    min_confidence=min_confidence,
                )

    document = {"scans": scans, "games": context.unified.snapshots()}
    if args.output:
        await context.snapshot_store.save_json(document, args.output)
        print(f"Wrote {len(document['games'])} games to {args.output}")
    else:
        print(json.dumps(document, indent=2, ensure_ascii=False))

    return exit_code


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    # Configured before the config file is read so its loading is logged too
    _ = setup_logging(log_level=args.log_level or "INFO", log_dir=args.log_dir, quiet=args.quiet)

    context = ApplicationContext(
        config_path=args.config,
        strategy=args.strategy,
        threshold=args.threshold,
    )

    log_level = args.log_level or context.config.log_level
    if log_level != (args.log_level or "INFO"):
        _ = setup_logging(log_level=log_level, log_dir=args.log_dir, quiet=args.quiet)

    log.info(
        "Starting game unifier",
        version=VERSION,
        log_level=log_level,
        paths=[str(p) for p in args.paths],
        config_path=str(context.config_service.config_path),
    )

    try:
        exit_code = asyncio.run(run_scan(context, args))

    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        exit_code = 130

    except (OSError, ValueError, ValidationError) as e:
        error = context.error_service.handle_error(e, "run_scan", "main")
        print(context.error_service.create_user_message(error), file=sys.stderr)
        exit_code = 1

    log.info("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
