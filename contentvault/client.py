# contentvault/client.py
"""
Client SDK for the vault server.

Usage:
    identity = IdentityStore("~/.contentvault/identities").get("alice")
    client = VaultClient("http://localhost:8400", identity=identity)

    content_id = client.create_content("Doc", 100, "S", ["a"])
    record = client.fetch_content_details(content_id)
"""

import json
from typing import List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlparse
from urllib.request import Request, urlopen

from .errors import ErrorKind, VaultError
from .host.identity import Identity
from .host.signatures import sign_request
from .records import ContentRecord, PermissionCheck, VaultStatistics

_KINDS = {kind.value: kind for kind in ErrorKind}


class VaultClient:
    """
    Client for the vault server.

    Args:
        base_url: Server URL (e.g., "http://localhost:8400")
        identity: Identity to sign caller-bound requests with
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8400",
        identity: Optional[Identity] = None,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.identity = identity
        self.timeout = timeout

    def _request(self, method: str, path: str, data: dict = None, signed: bool = False) -> dict:
        """Make HTTP request to server."""
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode() if data is not None else b""
        headers = {"Content-Type": "application/json"} if data is not None else {}

        if signed:
            if self.identity is None:
                raise ValueError("This request needs a signing identity")
            headers.update(sign_request(self.identity, method, urlparse(url).path, body))

        req = Request(url, data=body or None, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.timeout) as response:
                return json.loads(response.read().decode())
        except HTTPError as e:
            error_body = e.read().decode()
            try:
                message = json.loads(error_body).get("error", str(e))
            except json.JSONDecodeError:
                raise RuntimeError(f"HTTP {e.code}: {error_body}")
            if message in _KINDS:
                raise VaultError(_KINDS[message])
            raise RuntimeError(message)
        except URLError as e:
            raise ConnectionError(f"Failed to connect to server: {e}")

    def health(self) -> bool:
        """Check if server is healthy."""
        try:
            result = self._request("GET", "/health")
            return result.get("status") == "ok"
        except (ConnectionError, RuntimeError):
            return False

    def create_content(self, title: str, size_bytes: int, summary: str, labels: List[str]) -> int:
        """Create content owned by this client's identity and return its id."""
        result = self._request("POST", "/content", {
            "title": title,
            "size_bytes": size_bytes,
            "summary": summary,
            "labels": labels,
        }, signed=True)
        return result["id"]

    def transfer_ownership(self, content_id: int, new_owner: str) -> None:
        self._request(
            "POST", f"/content/{content_id}/transfer", {"new_owner": new_owner}, signed=True
        )

    def delete_content(self, content_id: int) -> None:
        self._request("DELETE", f"/content/{content_id}", signed=True)

    def fetch_content_details(self, content_id: int) -> ContentRecord:
        data = self._request("GET", f"/content/{content_id}", signed=True)
        return ContentRecord.from_dict(data)

    def fetch_content_owner(self, content_id: int) -> str:
        return self._request("GET", f"/content/{content_id}/owner")["owner"]

    def fetch_vault_statistics(self) -> VaultStatistics:
        data = self._request("GET", "/stats")
        return VaultStatistics(
            total_items=data["total_items"],
            administrator=data["administrator"],
        )

    def check_content_existence(self, content_id: int) -> bool:
        return self._request("GET", f"/content/{content_id}/exists")["exists"]

    def verify_user_permissions(self, content_id: int, user: str) -> PermissionCheck:
        data = self._request("GET", f"/content/{content_id}/permissions/{quote(user, safe='')}")
        return PermissionCheck(
            has_explicit_permission=data["has_explicit_permission"],
            is_owner=data["is_owner"],
        )


__all__ = ["VaultClient"]
