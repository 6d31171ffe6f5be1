# contentvault/permissions.py
"""
Permission store for content read access.

Maps (content_id, user) to a granted flag. The only row ever written is
the creator's grant at creation time. Rows are not removed when the
content is deleted; a dangling row is inert because reads always check
that the record exists first.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .records import PermissionCheck, PermissionEntry

logger = logging.getLogger(__name__)


class PermissionStore:
    """
    Keyed storage for explicit read grants.

    Structure (when persisted):
        store_dir/
            permissions.json   # List of permission entries
    """

    def __init__(self, store_dir: Optional[Path | str] = None):
        """
        Args:
            store_dir: Directory to persist grants in. None keeps them in memory.
        """
        self.store_dir = Path(store_dir) if store_dir is not None else None
        self._grants: Dict[Tuple[int, str], bool] = {}
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    def _index_path(self) -> Path:
        return self.store_dir / "permissions.json"

    def _load(self):
        """Load grants from disk."""
        index_path = self._index_path()
        if index_path.exists():
            with open(index_path) as f:
                data = json.load(f)
            for entry_data in data.get("permissions", []):
                entry = PermissionEntry.from_dict(entry_data)
                self._grants[(entry.content_id, entry.user)] = entry.granted
            logger.debug(f"Loaded {len(self._grants)} permission entries")

    def _save(self):
        """Save grants to disk."""
        if self.store_dir is None:
            return
        data = {
            "version": "1.0",
            "permissions": [e.to_dict() for e in self.entries()],
        }
        tmp_path = self._index_path().with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._index_path())

    def seed_creator(self, content_id: int, creator: str) -> None:
        """Record the creator's grant for a newly created item."""
        self._grants[(content_id, creator)] = True
        self._save()

    def has_grant(self, content_id: int, user: str) -> bool:
        """Explicit grant lookup. Missing rows read as not granted."""
        return self._grants.get((content_id, user), False)

    def check(self, content_id: int, user: str, owner: str) -> PermissionCheck:
        """
        Compute the access decision for a user.

        The owner is always permitted, whether or not a row exists for them.
        """
        return PermissionCheck(
            has_explicit_permission=self.has_grant(content_id, user),
            is_owner=user == owner,
        )

    def entries(self) -> List[PermissionEntry]:
        """All stored grants."""
        return [
            PermissionEntry(content_id=content_id, user=user, granted=granted)
            for (content_id, user), granted in self._grants.items()
        ]

    def __len__(self) -> int:
        return len(self._grants)
