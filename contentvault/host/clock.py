# contentvault/host/clock.py
"""
Block height clock.

Supplies the monotonically non-decreasing height captured into
created_at. The registry only reads it; the host advances it.
"""

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class BlockClock:
    """
    Persistent block height, starting at 0.

    Structure (when persisted):
        store_dir/
            clock.json
    """

    def __init__(self, store_dir: Optional[Path | str] = None, start: int = 0):
        self.store_dir = Path(store_dir) if store_dir is not None else None
        self._height = start
        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

    def _path(self) -> Path:
        return self.store_dir / "clock.json"

    def _load(self):
        path = self._path()
        if path.exists():
            with open(path) as f:
                data = json.load(f)
            self._height = max(self._height, int(data.get("height", 0)))

    def _save(self):
        if self.store_dir is None:
            return
        tmp_path = self._path().with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump({"height": self._height}, f)
        tmp_path.replace(self._path())

    def current(self) -> int:
        return self._height

    def advance(self) -> int:
        """Move to the next block and return its height."""
        self._height += 1
        self._save()
        return self._height

    def advance_to(self, height: int) -> int:
        """Jump forward to a given height. Going backwards is refused."""
        if height < self._height:
            raise ValueError(f"Height {height} is behind current height {self._height}")
        if height != self._height:
            logger.debug(f"Clock advanced from {self._height} to {height}")
            self._height = height
            self._save()
        return self._height
