# contentvault/errors.py
"""
Error kinds and operation results.

Registry operations never raise for a domain failure. They return a
VaultResult carrying either the value or the ErrorKind of the first
precondition that failed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Failure kinds surfaced by vault operations."""
    ADMIN_RIGHTS_NEEDED = "AdminRightsNeeded"
    CONTENT_MISSING = "ContentMissing"
    DUPLICATE_CONTENT = "DuplicateContent"
    METADATA_INVALID = "MetadataInvalid"
    SIZE_LIMIT_EXCEEDED = "SizeLimitExceeded"
    UNAUTHORIZED_ACCESS = "UnauthorizedAccess"
    OWNER_MISMATCH = "OwnerMismatch"
    VISIBILITY_BLOCKED = "VisibilityBlocked"
    TAG_FORMAT_ERROR = "TagFormatError"
    INVALID_PERMISSION_GRANT = "InvalidPermissionGrant"
    PERMISSION_DUPLICATE = "PermissionDuplicate"


class VaultError(Exception):
    """Raised when a failed VaultResult is unwrapped."""

    def __init__(self, kind: ErrorKind, message: str = None):
        self.kind = kind
        super().__init__(message or kind.value)


@dataclass
class VaultResult:
    """Result of a vault operation."""
    success: bool
    value: Any = None
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: Any = True) -> "VaultResult":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind) -> "VaultResult":
        return cls(success=False, error=kind)

    def unwrap(self) -> Any:
        """Return the value, or raise VaultError for a failed result."""
        if not self.success:
            raise VaultError(self.error)
        return self.value

    def __bool__(self) -> bool:
        return self.success
