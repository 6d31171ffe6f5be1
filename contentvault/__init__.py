# contentvault - Permissioned content registry
#
# Records metadata about content items, tracks a single owner per item and
# gates reads of item details behind ownership or an explicit grant.
#
# Core concepts:
# - ContentRecord: Metadata for one item, keyed by a sequential id
# - ContentRegistry: Creates, transfers, deletes and reads records
# - PermissionStore: Explicit (content, user) read grants
# - VaultResult: Success value or the ErrorKind that stopped an operation
# - Vault: The registry wired to identities, a block clock and a journal

from .errors import ErrorKind, VaultError, VaultResult
from .records import ContentRecord, PermissionEntry, PermissionCheck, VaultStatistics
from .permissions import PermissionStore
from .registry import CallContext, ContentRegistry
from .journal import Journal, JournalEntry
from .vault import Vault

__all__ = [
    "ErrorKind",
    "VaultError",
    "VaultResult",
    "ContentRecord",
    "PermissionEntry",
    "PermissionCheck",
    "VaultStatistics",
    "PermissionStore",
    "CallContext",
    "ContentRegistry",
    "Journal",
    "JournalEntry",
    "Vault",
]

__version__ = "0.1.0"
