# contentvault/journal.py
"""
Append-only journal of committed vault mutations.

Every successful create, transfer and delete is recorded with the caller
and the block height it ran at. Rejected operations leave no entry.
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CREATE = "create"
TRANSFER = "transfer"
DELETE = "delete"


@dataclass
class JournalEntry:
    """
    One committed mutation.

    Attributes:
        entry_id: Unique identifier
        action: create, transfer or delete
        content_id: Content the action applied to
        caller: Identity that performed it
        height: Block height it ran at
        details: Action specific data (e.g. new_owner)
        recorded_at: Wall clock timestamp
    """
    entry_id: str
    action: str
    content_id: int
    caller: str
    height: int
    details: Dict[str, Any] = field(default_factory=dict)
    recorded_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "action": self.action,
            "content_id": self.content_id,
            "caller": self.caller,
            "height": self.height,
            "details": self.details,
            "recorded_at": self.recorded_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        return cls(
            entry_id=data["entry_id"],
            action=data["action"],
            content_id=int(data["content_id"]),
            caller=data["caller"],
            height=int(data["height"]),
            details=data.get("details", {}),
            recorded_at=data.get("recorded_at", 0.0),
        )


class Journal:
    """Persistent, append-only list of JournalEntry."""

    def __init__(self, store_dir: Optional[Path | str] = None):
        self.store_dir = Path(store_dir) if store_dir is not None else None
        self._entries: List[JournalEntry] = []
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    def _log_path(self) -> Path:
        return self.store_dir / "journal.json"

    def _load(self):
        """Load entries from disk."""
        log_path = self._log_path()
        if log_path.exists():
            try:
                with open(log_path) as f:
                    data = json.load(f)
                self._entries = [
                    JournalEntry.from_dict(e) for e in data.get("entries", [])
                ]
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Failed to load journal: {e}")
                self._entries = []

    def _save(self):
        """Save entries to disk."""
        if self.store_dir is None:
            return
        data = {
            "version": "1.0",
            "entries": [e.to_dict() for e in self._entries],
        }
        tmp_path = self._log_path().with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._log_path())

    def record(
        self,
        action: str,
        content_id: int,
        caller: str,
        height: int,
        **details: Any,
    ) -> JournalEntry:
        """Append an entry for a committed mutation."""
        entry = JournalEntry(
            entry_id=str(uuid.uuid4()),
            action=action,
            content_id=content_id,
            caller=caller,
            height=height,
            details=details,
        )
        self._entries.append(entry)
        try:
            self._save()
        except Exception:
            self._entries.pop()
            raise
        return entry

    def list(self) -> List[JournalEntry]:
        """All entries, oldest first."""
        return list(self._entries)

    def find_by_content(self, content_id: int) -> List[JournalEntry]:
        return [e for e in self._entries if e.content_id == content_id]

    def find_by_caller(self, caller: str) -> List[JournalEntry]:
        return [e for e in self._entries if e.caller == caller]

    def __len__(self) -> int:
        return len(self._entries)
