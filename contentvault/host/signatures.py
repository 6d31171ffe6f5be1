# contentvault/host/signatures.py
"""
Request signatures.

A request is signed over the canonical JSON of its method, path, body
digest, creation time and a one-off nonce, using RSA-SHA256 with
PKCS#1 v1.5 padding. The nonce lets the receiver refuse replays.
"""

import base64
import hashlib
import json
import time
import uuid
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from .identity import Identity

IDENTITY_HEADER = "X-Vault-Identity"
SIGNATURE_HEADER = "X-Vault-Signature"
CREATED_HEADER = "X-Vault-Created"
NONCE_HEADER = "X-Vault-Nonce"

# Signatures older than this are refused
MAX_SIGNATURE_AGE = 300


def _canonicalize(data: Dict[str, Any]) -> str:
    """Sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _signing_payload(method: str, path: str, body: bytes, created: str, nonce: str) -> bytes:
    document = {
        "method": method.upper(),
        "path": path,
        "body": hashlib.sha256(body or b"").hexdigest(),
        "created": created,
        "nonce": nonce,
    }
    return _canonicalize(document).encode()


def sign_request(identity: Identity, method: str, path: str, body: bytes = b"") -> Dict[str, str]:
    """
    Sign a request as an identity.

    Returns:
        Headers to attach to the request
    """
    if not identity.can_sign:
        raise ValueError(f"Identity {identity.username} has no private key")

    private_key = serialization.load_pem_private_key(
        identity.private_key,
        password=None,
    )
    created = str(int(time.time()))
    nonce = str(uuid.uuid4())
    signature_bytes = private_key.sign(
        _signing_payload(method, path, body, created, nonce),
        padding.PKCS1v15(),
        hashes.SHA256(),
    )
    return {
        IDENTITY_HEADER: identity.username,
        SIGNATURE_HEADER: base64.b64encode(signature_bytes).decode("utf-8"),
        CREATED_HEADER: created,
        NONCE_HEADER: nonce,
    }


def verify_request(
    identity: Identity,
    method: str,
    path: str,
    body: bytes,
    signature: str,
    created: str,
    nonce: str,
    now: Optional[float] = None,
) -> bool:
    """
    Verify a request signature against an identity's public key.

    Returns:
        True if the signature is valid and fresh
    """
    if not signature or not created or not nonce:
        return False

    try:
        age = (now if now is not None else time.time()) - int(created)
        if abs(age) > MAX_SIGNATURE_AGE:
            return False

        public_key = serialization.load_pem_public_key(identity.public_key)
        public_key.verify(
            base64.b64decode(signature),
            _signing_payload(method, path, body, created, nonce),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return True

    except (InvalidSignature, ValueError):
        return False
