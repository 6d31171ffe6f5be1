# contentvault/host/identity.py
"""
Caller identities.

An Identity is a username with an RSA key pair. The username is the
principal the registry sees as the caller; the key pair lets the host
authenticate requests made on that identity's behalf.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)


def _generate_keypair() -> tuple[bytes, bytes]:
    """Generate RSA key pair for signing."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


@dataclass
class Identity:
    """
    A vault user.

    Attributes:
        username: Principal name used as caller and owner
        public_key: PEM-encoded public key
        private_key: PEM-encoded private key (None for verify-only copies)
        created_at: Timestamp of creation
    """
    username: str
    public_key: bytes
    private_key: Optional[bytes] = None
    created_at: float = field(default_factory=time.time)

    @property
    def can_sign(self) -> bool:
        return self.private_key is not None

    def public_only(self) -> "Identity":
        """Copy without the private key."""
        return Identity(
            username=self.username,
            public_key=self.public_key,
            created_at=self.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage."""
        data = {
            "username": self.username,
            "public_key": self.public_key.decode("utf-8"),
            "created_at": self.created_at,
        }
        if self.private_key is not None:
            data["private_key"] = self.private_key.decode("utf-8")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        """Deserialize from storage."""
        private_key = data.get("private_key")
        return cls(
            username=data["username"],
            public_key=data["public_key"].encode("utf-8"),
            private_key=private_key.encode("utf-8") if private_key else None,
            created_at=data.get("created_at", time.time()),
        )

    @classmethod
    def create(cls, username: str) -> "Identity":
        """Create a new identity with generated keys."""
        private_pem, public_pem = _generate_keypair()
        return cls(
            username=username,
            public_key=public_pem,
            private_key=private_pem,
        )


class IdentityStore:
    """
    Persistent storage for identities.

    Structure:
        store_dir/
            identities.json   # Index of all identities
    """

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self._identities: Dict[str, Identity] = {}
        self._load()

    def _index_path(self) -> Path:
        return self.store_dir / "identities.json"

    def _load(self):
        """Load identities from disk."""
        index_path = self._index_path()
        if index_path.exists():
            with open(index_path) as f:
                data = json.load(f)
            self._identities = {
                username: Identity.from_dict(identity_data)
                for username, identity_data in data.get("identities", {}).items()
            }

    def _save(self):
        """Save identities to disk."""
        data = {
            "version": "1.0",
            "identities": {
                username: identity.to_dict()
                for username, identity in self._identities.items()
            },
        }
        tmp_path = self._index_path().with_suffix(".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self._index_path())

    def create(self, username: str) -> Identity:
        """Create and store a new identity."""
        if not username:
            raise ValueError("Username must not be empty")
        if username in self._identities:
            raise ValueError(f"Identity {username} already exists")

        identity = Identity.create(username)
        self._identities[username] = identity
        self._save()
        logger.info(f"Created identity {username}")
        return identity

    def add(self, identity: Identity) -> None:
        """Register an identity created elsewhere (typically public key only)."""
        if identity.username in self._identities:
            raise ValueError(f"Identity {identity.username} already exists")
        self._identities[identity.username] = identity
        self._save()

    def get(self, username: str) -> Optional[Identity]:
        """Get an identity by username."""
        return self._identities.get(username)

    def list(self) -> list[Identity]:
        """List all identities."""
        return list(self._identities.values())

    def __contains__(self, username: str) -> bool:
        return username in self._identities

    def __len__(self) -> int:
        return len(self._identities)
