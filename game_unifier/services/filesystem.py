"""Snapshot persistence: JSON export of scan and catalog snapshots."""

import json
from pathlib import Path
from typing import Any

import structlog

log = structlog.stdlib.get_logger()


class SnapshotStore:
    """Reads and writes JSON documents with atomic replacement."""

    async def save_json(self, data: dict[str, Any] | list[Any], path: Path) -> None:
        """Save data as JSON to the specified path.

        Args:
            data: JSON-ready object or list
            path: Path to save the file

        Raises:
            OSError: If file cannot be written
            ValueError: If data cannot be serialized to JSON
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        # Written beside the target and moved into place so readers never see a partial file
        temp_path = path.with_suffix(path.suffix + ".tmp")

        log.debug("Saving JSON data", path=str(path), temp_path=str(temp_path))
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(path)
        except OSError as e:
            log.error("Failed to save JSON data", path=str(path), error=str(e))
            temp_path.unlink(missing_ok=True)
            raise
        except (TypeError, ValueError) as e:
            log.error("Failed to serialize data to JSON", path=str(path), error=str(e))
            temp_path.unlink(missing_ok=True)
            raise ValueError(f"Cannot serialize data to JSON: {e}") from e

        log.info("JSON data saved successfully", path=str(path), size=path.stat().st_size)

    async def load_json(self, path: Path) -> dict[str, Any] | list[Any]:
        """Load a JSON object or list from the specified path.

        Raises:
            FileNotFoundError: If file does not exist
            OSError: If file cannot be read
            ValueError: If the file is not valid JSON or holds a scalar
        """
        log.debug("Loading JSON data", path=str(path))

        if not path.exists():
            log.error("JSON file not found", path=str(path))
            raise FileNotFoundError(f"File not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            log.error("Invalid JSON in file", path=str(path), error=str(e))
            raise ValueError(f"Invalid JSON in file {path}: {e}") from e

        if not isinstance(data, (dict, list)):
            raise ValueError(f"Expected JSON object or list, got {type(data).__name__}")

        log.info("JSON data loaded successfully", path=str(path), entries=len(data))
        return data
