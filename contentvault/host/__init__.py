# contentvault/host/__init__.py
"""
Host environment for the vault.

The registry trusts the caller identity and block height it is given.
This package is where those come from:
- Identity: A username with an RSA key pair
- Signatures: Proof that a request was made by an identity
- BlockClock: The height captured into created_at
"""

from .clock import BlockClock
from .identity import Identity, IdentityStore
from .signatures import sign_request, verify_request

__all__ = [
    "BlockClock",
    "Identity",
    "IdentityStore",
    "sign_request",
    "verify_request",
]
