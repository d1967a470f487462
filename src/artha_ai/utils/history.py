import json
from pathlib import Path
from typing import List
from pydantic import ValidationError
from artha_ai.analysts.models import HistoryEntry
from artha_ai.config import HISTORY_FILE, HISTORY_LIMIT
from artha_ai.utils.logging_config import logger


def record_search(history: List[HistoryEntry], entry: HistoryEntry, limit: int = HISTORY_LIMIT) -> List[HistoryEntry]:
    """
    Put a search at the front of the recent searches list.

    Any older entry for the same symbol is dropped (symbols compare
    case-sensitively) and the list is cut to `limit` entries.
    """
    remaining = [item for item in history if item.symbol != entry.symbol]
    return [entry, *remaining][:limit]


class HistoryStore:
    """Recent searches persisted as a JSON list."""

    def __init__(self, path: Path | str = HISTORY_FILE):
        self.path = Path(path)

    def load(self) -> List[HistoryEntry]:
        """Read the saved history; a missing or unreadable file means no history."""
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read search history from {self.path}: {e}")
            return []
        if not isinstance(raw, list):
            logger.warning(f"Search history in {self.path} is not a list, ignoring it")
            return []

        entries = []
        for item in raw:
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed history entry {item!r}: {e}")
        return entries[:HISTORY_LIMIT]

    def save(self, entries: List[HistoryEntry]) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug(f"Saved {len(entries)} history entries to {self.path}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.info("Search history cleared")
