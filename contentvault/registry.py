# contentvault/registry.py
"""
Content registry.

The registry owns the id -> record map, the id sequence and the
deployment administrator. Every mutating operation validates all of its
preconditions before the first write, so a failed call leaves no trace.

Example:
    registry = ContentRegistry(administrator="admin")
    ctx = CallContext(caller="alice", height=12)
    result = registry.create_content(ctx, "Doc", 100, "S", ["a"])
    content_id = result.unwrap()
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ErrorKind, VaultResult
from .permissions import PermissionStore
from .records import ContentRecord, VaultStatistics
from .validation import check_new_content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallContext:
    """
    Host-supplied facts about one call.

    Attributes:
        caller: Authenticated identity the call runs as
        height: Current block height, captured into created_at
    """
    caller: str
    height: int


class ContentRegistry:
    """
    Registry of content records with single-owner semantics.

    Structure (when persisted):
        store_dir/
            vault.json        # Administrator, sequence and records
            permissions/      # PermissionStore data
    """

    def __init__(
        self,
        store_dir: Optional[Path | str] = None,
        administrator: str = None,
        permissions: PermissionStore = None,
    ):
        """
        Initialize the registry.

        Args:
            store_dir: Directory to persist state in. None keeps state in memory.
            administrator: Deployment administrator. Required for a new store;
                must match the stored value when reopening one.
            permissions: Permission store to use (defaults to one under store_dir)
        """
        self.store_dir = Path(store_dir) if store_dir is not None else None
        self._records: Dict[int, ContentRecord] = {}
        self._sequence = 0
        self._administrator: Optional[str] = None

        if permissions is None:
            permissions = PermissionStore(
                self.store_dir / "permissions" if self.store_dir is not None else None
            )
        self.permissions = permissions

        if self.store_dir is not None:
            self.store_dir.mkdir(parents=True, exist_ok=True)
            self._load()

        if self._administrator is None:
            if not administrator:
                raise ValueError("An administrator is required for a new registry")
            self._administrator = administrator
            self._save()
        elif administrator and administrator != self._administrator:
            raise ValueError(
                f"Registry administrator is {self._administrator!r}; "
                f"it cannot be changed to {administrator!r}"
            )

    def _index_path(self) -> Path:
        return self.store_dir / "vault.json"

    def _load(self):
        """Load registry state from disk."""
        index_path = self._index_path()
        if index_path.exists():
            with open(index_path) as f:
                data = json.load(f)
            self._administrator = data.get("administrator")
            self._sequence = int(data.get("sequence", 0))
            self._records = {
                int(content_id): ContentRecord.from_dict(record_data)
                for content_id, record_data in data.get("records", {}).items()
            }
            logger.debug(
                f"Loaded registry: {len(self._records)} records, sequence {self._sequence}"
            )

    def _save(self):
        """Save registry state to disk."""
        if self.store_dir is None:
            return
        data = {
            "version": "1.0",
            "administrator": self._administrator,
            "sequence": self._sequence,
            "records": {
                str(content_id): record.to_dict()
                for content_id, record in self._records.items()
            },
        }
        tmp_path = self._index_path().with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._index_path())

    def _reject(self, operation: str, kind: ErrorKind, ctx: CallContext = None) -> VaultResult:
        caller = f" by {ctx.caller}" if ctx else ""
        logger.debug(f"{operation}{caller} rejected: {kind.value}")
        return VaultResult.fail(kind)

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def sequence(self) -> int:
        """Last assigned content id."""
        return self._sequence

    # Mutating operations

    def create_content(
        self,
        ctx: CallContext,
        title: str,
        size_bytes: int,
        summary: str,
        labels: List[str],
    ) -> VaultResult:
        """
        Register a new content item owned by the caller.

        Returns:
            VaultResult with the new id, or METADATA_INVALID,
            SIZE_LIMIT_EXCEEDED or TAG_FORMAT_ERROR
        """
        error = check_new_content(title, size_bytes, summary, labels)
        if error is not None:
            return self._reject("create_content", error, ctx)

        content_id = self._sequence + 1
        self._records[content_id] = ContentRecord(
            id=content_id,
            title=title,
            creator=ctx.caller,
            size_bytes=size_bytes,
            created_at=ctx.height,
            summary=summary,
            labels=list(labels),
        )
        self._sequence = content_id
        self._save()
        self.permissions.seed_creator(content_id, ctx.caller)

        logger.info(f"Created content {content_id} for {ctx.caller} at height {ctx.height}")
        return VaultResult.ok(content_id)

    def transfer_ownership(self, ctx: CallContext, content_id: int, new_owner: str) -> VaultResult:
        """
        Hand a content item to a new owner.

        Only the creator field changes. Explicit grants are left alone.
        """
        record = self._records.get(content_id)
        if record is None:
            return self._reject("transfer_ownership", ErrorKind.CONTENT_MISSING, ctx)
        if record.creator != ctx.caller:
            return self._reject("transfer_ownership", ErrorKind.OWNER_MISMATCH, ctx)

        record.creator = new_owner
        self._save()

        logger.info(f"Transferred content {content_id} from {ctx.caller} to {new_owner}")
        return VaultResult.ok(True)

    def delete_content(self, ctx: CallContext, content_id: int) -> VaultResult:
        """Remove a content item. Its id is never handed out again."""
        record = self._records.get(content_id)
        if record is None:
            return self._reject("delete_content", ErrorKind.CONTENT_MISSING, ctx)
        if record.creator != ctx.caller:
            return self._reject("delete_content", ErrorKind.OWNER_MISMATCH, ctx)

        del self._records[content_id]
        self._save()

        logger.info(f"Deleted content {content_id} by {ctx.caller}")
        return VaultResult.ok(True)

    # Reads

    def fetch_content_details(self, ctx: CallContext, content_id: int) -> VaultResult:
        """Return a snapshot of the record if the caller may read it."""
        record = self._records.get(content_id)
        if record is None:
            return self._reject("fetch_content_details", ErrorKind.CONTENT_MISSING, ctx)

        decision = self.permissions.check(content_id, ctx.caller, record.creator)
        if not decision.can_access:
            return self._reject("fetch_content_details", ErrorKind.VISIBILITY_BLOCKED, ctx)

        return VaultResult.ok(record.snapshot())

    def fetch_content_owner(self, content_id: int) -> VaultResult:
        record = self._records.get(content_id)
        if record is None:
            return self._reject("fetch_content_owner", ErrorKind.CONTENT_MISSING)
        return VaultResult.ok(record.creator)

    def fetch_vault_statistics(self) -> VaultResult:
        return VaultResult.ok(VaultStatistics(
            total_items=self._sequence,
            administrator=self._administrator,
        ))

    def check_content_existence(self, content_id: int) -> bool:
        return content_id in self._records

    def verify_user_permissions(self, content_id: int, user: str) -> VaultResult:
        """
        Report explicit grant, ownership and the combined access decision.

        Returns:
            VaultResult with a PermissionCheck, or CONTENT_MISSING
        """
        record = self._records.get(content_id)
        if record is None:
            return self._reject("verify_user_permissions", ErrorKind.CONTENT_MISSING)
        return VaultResult.ok(self.permissions.check(content_id, user, record.creator))

    def __contains__(self, content_id: int) -> bool:
        return self.check_content_existence(content_id)

    def __len__(self) -> int:
        return len(self._records)
