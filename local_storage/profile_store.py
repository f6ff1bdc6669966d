"""Profile store for approved candidates.

A keyed upsert store: writing the same key again replaces the record, so the
persist step can be replayed safely. Records live in memory and, when a
directory is configured, as one JSON file per key.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any
from urllib.parse import quote

from orchestrator.errors import ExternalOperationError

logger = logging.getLogger(__name__)

def candidate_key(candidate_id: str) -> str:
    """Store key for a candidate."""
    return f"candidate:{candidate_id}"


def record_path(store_dir: Path, key: str) -> Path:
    """File holding the record for key; distinct keys never share a file."""
    return store_dir / f"{quote(key, safe='')}.json"


class ProfileStore:
    """Keyed upsert store.

    Example:
        >>> store = ProfileStore()
        >>> store.upsert("candidate:c1", {"approved": True})
        >>> store.get("candidate:c1")["approved"]
        True
    """

    def __init__(self, store_dir: Path | str | None = None) -> None:
        """Initialize the store.

        Args:
            store_dir: Directory for JSON records (None = memory only)
        """
        self.store_dir = Path(store_dir) if store_dir else None
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
        self._records: dict[str, dict[str, Any]] = {}
        self.write_count = 0

    def upsert(self, key: str, value: dict[str, Any]) -> dict[str, Any]:
        """Insert or replace the record under key.

        Returns:
            The stored record (value plus a ts field in epoch milliseconds)

        Raises:
            ExternalOperationError: If the record cannot be written
        """
        record = {**value, "ts": int(time.time() * 1000)}

        if self.store_dir is not None:
            path = record_path(self.store_dir, key)
            tmp = path.with_suffix(".json.tmp")
            try:
                tmp.write_text(json.dumps({"key": key, "value": record}, indent=2, default=str))
                tmp.replace(path)
            except OSError as e:
                raise ExternalOperationError(f"Failed to persist {key}: {e}") from e

        self._records[key] = record
        self.write_count += 1
        logger.info("Upserted %s", key)
        return record

    def get(self, key: str) -> dict[str, Any] | None:
        """Fetch a record, falling back to disk for records written by another process."""
        if key in self._records:
            return self._records[key]
        if self.store_dir is None:
            return None
        path = record_path(self.store_dir, key)
        if not path.exists():
            return None
        data = json.loads(path.read_text())
        self._records[key] = data["value"]
        return data["value"]

    def keys(self) -> list[str]:
        keys = set(self._records)
        if self.store_dir is not None:
            for path in self.store_dir.glob("*.json"):
                try:
                    keys.add(json.loads(path.read_text())["key"])
                except (OSError, ValueError, KeyError):
                    logger.warning("Skipping unreadable record %s", path)
        return sorted(keys)

    def __len__(self) -> int:
        return len(self.keys())
