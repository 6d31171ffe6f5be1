# contentvault/records.py
"""
Plain data records held by the vault.

ContentRecord is keyed by its sequential id. PermissionEntry rows are
keyed by (content_id, user) and may outlive the record they point at.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ContentRecord:
    """
    Metadata about one registered content item.

    Attributes:
        id: Sequential identifier, never reused
        title: Display title (1-64 characters)
        creator: Identity of the current owner
        size_bytes: Size of the content in bytes
        created_at: Block height captured at creation
        summary: Short description (1-128 characters)
        labels: Ordered tags (1-10 entries, 1-32 characters each)
    """
    id: int
    title: str
    creator: str
    size_bytes: int
    created_at: int
    summary: str
    labels: List[str] = field(default_factory=list)

    def snapshot(self) -> "ContentRecord":
        """Detached copy safe to hand to readers."""
        return ContentRecord(
            id=self.id,
            title=self.title,
            creator=self.creator,
            size_bytes=self.size_bytes,
            created_at=self.created_at,
            summary=self.summary,
            labels=list(self.labels),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "creator": self.creator,
            "size_bytes": self.size_bytes,
            "created_at": self.created_at,
            "summary": self.summary,
            "labels": list(self.labels),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentRecord":
        return cls(
            id=int(data["id"]),
            title=data["title"],
            creator=data["creator"],
            size_bytes=int(data["size_bytes"]),
            created_at=int(data["created_at"]),
            summary=data["summary"],
            labels=list(data.get("labels", [])),
        )


@dataclass
class PermissionEntry:
    """An explicit read grant for one user on one content item."""
    content_id: int
    user: str
    granted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "user": self.user,
            "granted": self.granted,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionEntry":
        return cls(
            content_id=int(data["content_id"]),
            user=data["user"],
            granted=bool(data.get("granted", True)),
        )


@dataclass
class PermissionCheck:
    """Access decision for a (content, user) pair."""
    has_explicit_permission: bool
    is_owner: bool

    @property
    def can_access(self) -> bool:
        return self.has_explicit_permission or self.is_owner

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_explicit_permission": self.has_explicit_permission,
            "is_owner": self.is_owner,
            "can_access": self.can_access,
        }


@dataclass
class VaultStatistics:
    """Registry-wide counters."""
    total_items: int
    administrator: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_items": self.total_items,
            "administrator": self.administrator,
        }
