# contentvault/vault.py
"""
The vault host.

Wires the registry to its environment: identities, the block clock and
the journal, all kept under one base directory. Calls are serialised
with a single lock so every operation commits fully before the next one
starts.

Each committed mutation is placed in its own block: it runs at the
height after the current one and the clock moves there on success.
"""

import logging
import threading
from pathlib import Path
from typing import List

from .errors import VaultResult
from .host.clock import BlockClock
from .host.identity import IdentityStore
from .journal import CREATE, DELETE, TRANSFER, Journal
from .registry import CallContext, ContentRegistry

logger = logging.getLogger(__name__)


class Vault:
    """
    Registry plus host environment.

    Structure:
        base_dir/
            registry/      # ContentRegistry and PermissionStore
            identities/    # IdentityStore
            clock/         # BlockClock
            journal/       # Journal
    """

    def __init__(self, base_dir: Path | str, administrator: str = None):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        self.registry = ContentRegistry(self.base_dir / "registry", administrator=administrator)
        self.identities = IdentityStore(self.base_dir / "identities")
        self.clock = BlockClock(self.base_dir / "clock")
        self.journal = Journal(self.base_dir / "journal")
        self._lock = threading.Lock()

    @classmethod
    def exists(cls, base_dir: Path | str) -> bool:
        """Whether a vault has been initialised in base_dir."""
        return (Path(base_dir) / "registry" / "vault.json").exists()

    def _pending_context(self, caller: str) -> CallContext:
        return CallContext(caller=caller, height=self.clock.current() + 1)

    def _read_context(self, caller: str) -> CallContext:
        return CallContext(caller=caller, height=self.clock.current())

    def _commit(self, action: str, content_id: int, ctx: CallContext, **details) -> None:
        """
        Finish a mutation the registry has already persisted.

        Write order is registry, permissions, clock, journal. The clock
        moves before the journal is written so a failed journal write can
        never leave the next mutation reusing this height. The journal is
        an audit trail; if its write fails the mutation still stands and
        the error propagates.
        """
        logger.debug(f"Committing {action} of content {content_id} at height {ctx.height}")
        self.clock.advance_to(ctx.height)
        self.journal.record(action, content_id, ctx.caller, ctx.height, **details)

    def create_content(
        self,
        caller: str,
        title: str,
        size_bytes: int,
        summary: str,
        labels: List[str],
    ) -> VaultResult:
        with self._lock:
            ctx = self._pending_context(caller)
            result = self.registry.create_content(ctx, title, size_bytes, summary, labels)
            if result.success:
                self._commit(CREATE, result.value, ctx)
            return result

    def transfer_ownership(self, caller: str, content_id: int, new_owner: str) -> VaultResult:
        with self._lock:
            ctx = self._pending_context(caller)
            result = self.registry.transfer_ownership(ctx, content_id, new_owner)
            if result.success:
                self._commit(TRANSFER, content_id, ctx, new_owner=new_owner)
            return result

    def delete_content(self, caller: str, content_id: int) -> VaultResult:
        with self._lock:
            ctx = self._pending_context(caller)
            result = self.registry.delete_content(ctx, content_id)
            if result.success:
                self._commit(DELETE, content_id, ctx)
            return result

    def fetch_content_details(self, caller: str, content_id: int) -> VaultResult:
        with self._lock:
            return self.registry.fetch_content_details(self._read_context(caller), content_id)

    def fetch_content_owner(self, content_id: int) -> VaultResult:
        with self._lock:
            return self.registry.fetch_content_owner(content_id)

    def fetch_vault_statistics(self) -> VaultResult:
        with self._lock:
            return self.registry.fetch_vault_statistics()

    def check_content_existence(self, content_id: int) -> bool:
        with self._lock:
            return self.registry.check_content_existence(content_id)

    def verify_user_permissions(self, content_id: int, user: str) -> VaultResult:
        with self._lock:
            return self.registry.verify_user_permissions(content_id, user)
