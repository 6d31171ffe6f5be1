# contentvault/server.py
"""
HTTP server for the content vault.

Provides a JSON API over a Vault. Requests that act as a caller must be
signed (see contentvault.host.signatures).

Endpoints:
    GET    /health                           - Liveness check
    GET    /stats                            - Vault statistics
    POST   /content                          - Create content (signed)
    GET    /content/:id                      - Content details (signed)
    DELETE /content/:id                      - Delete content (signed)
    POST   /content/:id/transfer             - Transfer ownership (signed)
    GET    /content/:id/owner                - Current owner
    GET    /content/:id/exists               - Existence check
    GET    /content/:id/permissions/:user    - Permission check for a user
"""

import json
import logging
import re
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote, urlparse

from .errors import ErrorKind, VaultResult
from .host.signatures import (
    CREATED_HEADER,
    IDENTITY_HEADER,
    MAX_SIGNATURE_AGE,
    NONCE_HEADER,
    SIGNATURE_HEADER,
    verify_request,
)
from .vault import Vault

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.CONTENT_MISSING: 404,
    ErrorKind.OWNER_MISMATCH: 403,
    ErrorKind.VISIBILITY_BLOCKED: 403,
    ErrorKind.ADMIN_RIGHTS_NEEDED: 403,
    ErrorKind.UNAUTHORIZED_ACCESS: 401,
    ErrorKind.METADATA_INVALID: 400,
    ErrorKind.SIZE_LIMIT_EXCEEDED: 400,
    ErrorKind.TAG_FORMAT_ERROR: 400,
    ErrorKind.INVALID_PERMISSION_GRANT: 400,
    ErrorKind.DUPLICATE_CONTENT: 409,
    ErrorKind.PERMISSION_DUPLICATE: 409,
}

CONTENT_PATH = re.compile(r"^/content/(\d+)$")
CONTENT_ACTION_PATH = re.compile(r"^/content/(\d+)/(transfer|owner|exists)$")
PERMISSIONS_PATH = re.compile(r"^/content/(\d+)/permissions/([^/]+)$")


class VaultServer:
    """
    HTTP server for a vault.

    Usage:
        server = VaultServer(vault, port=8400)
        server.start()  # Blocking
    """

    def __init__(self, vault: Vault, host: str = "127.0.0.1", port: int = 8400):
        self.vault = vault
        self.host = host
        self.port = port
        self._httpd: Optional[ThreadingHTTPServer] = None
        # (username, nonce) -> time first seen
        self._seen_nonces: Dict[Tuple[str, str], float] = {}
        self._nonce_lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def authenticate(self, method: str, path: str, body: bytes, headers) -> Optional[str]:
        """Return the caller a signed request was made by, or None."""
        username = headers.get(IDENTITY_HEADER)
        if not username:
            return None
        identity = self.vault.identities.get(username)
        if identity is None:
            logger.debug(f"Unknown identity {username}")
            return None
        if not verify_request(
            identity,
            method,
            path,
            body,
            headers.get(SIGNATURE_HEADER, ""),
            headers.get(CREATED_HEADER, ""),
            headers.get(NONCE_HEADER, ""),
        ):
            logger.debug(f"Bad signature from {username}")
            return None
        if not self._claim_nonce(username, headers.get(NONCE_HEADER)):
            logger.debug(f"Replayed request from {username}")
            return None
        return username

    def _claim_nonce(self, username: str, nonce: str) -> bool:
        """Record a nonce as used. False if it was already used in the window."""
        now = time.time()
        with self._nonce_lock:
            expired = [
                key for key, seen_at in self._seen_nonces.items()
                if now - seen_at > 2 * MAX_SIGNATURE_AGE
            ]
            for key in expired:
                del self._seen_nonces[key]

            key = (username, nonce)
            if key in self._seen_nonces:
                return False
            self._seen_nonces[key] = now
            return True

    def _create_handler(server_instance):
        """Create request handler with access to server instance."""

        class RequestHandler(BaseHTTPRequestHandler):
            server_ref = server_instance

            def log_message(self, format, *args):
                logger.debug(format % args)

            def _send_json(self, data: Any, status: int = 200):
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.end_headers()
                self.wfile.write(json.dumps(data).encode())

            def _send_error(self, message: str, status: int = 400):
                self._send_json({"error": message}, status)

            def _send_result(self, result: VaultResult, render=lambda value: value):
                if result.success:
                    self._send_json(render(result.value))
                else:
                    self._send_error(result.error.value, ERROR_STATUS.get(result.error, 400))

            def _read_body(self) -> Optional[bytes]:
                try:
                    content_length = int(self.headers.get("Content-Length", 0))
                except ValueError:
                    content_length = -1
                if content_length < 0:
                    self._send_error("Invalid Content-Length")
                    return None
                return self.rfile.read(content_length) if content_length else b""

            def _caller(self, path: str, body: bytes) -> Optional[str]:
                caller = self.server_ref.authenticate(self.command, path, body, self.headers)
                if caller is None:
                    self._send_error(ErrorKind.UNAUTHORIZED_ACCESS.value, 401)
                return caller

            def do_GET(self):
                vault = self.server_ref.vault
                path = urlparse(self.path).path
                body = self._read_body()
                if body is None:
                    return

                if path == "/health":
                    self._send_json({"status": "ok"})
                    return

                if path == "/stats":
                    self._send_result(vault.fetch_vault_statistics(), lambda s: s.to_dict())
                    return

                match = CONTENT_PATH.match(path)
                if match:
                    caller = self._caller(path, body)
                    if caller is None:
                        return
                    result = vault.fetch_content_details(caller, int(match.group(1)))
                    self._send_result(result, lambda r: r.to_dict())
                    return

                match = CONTENT_ACTION_PATH.match(path)
                if match and match.group(2) == "owner":
                    result = vault.fetch_content_owner(int(match.group(1)))
                    self._send_result(result, lambda owner: {"owner": owner})
                    return
                if match and match.group(2) == "exists":
                    exists = vault.check_content_existence(int(match.group(1)))
                    self._send_json({"exists": exists})
                    return

                match = PERMISSIONS_PATH.match(path)
                if match:
                    result = vault.verify_user_permissions(
                        int(match.group(1)), unquote(match.group(2))
                    )
                    self._send_result(result, lambda check: check.to_dict())
                    return

                self._send_error("Not found", 404)

            def do_POST(self):
                vault = self.server_ref.vault
                path = urlparse(self.path).path
                body = self._read_body()
                if body is None:
                    return

                match = CONTENT_ACTION_PATH.match(path)
                is_transfer = bool(match) and match.group(2) == "transfer"
                if path != "/content" and not is_transfer:
                    self._send_error("Not found", 404)
                    return

                try:
                    data = json.loads(body.decode()) if body else {}
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    self._send_error(f"Invalid JSON: {e}")
                    return
                if not isinstance(data, dict):
                    self._send_error("Request body must be a JSON object")
                    return

                caller = self._caller(path, body)
                if caller is None:
                    return

                if is_transfer:
                    new_owner = data.get("new_owner")
                    if not isinstance(new_owner, str) or not new_owner:
                        self._send_error("new_owner is required")
                        return
                    result = vault.transfer_ownership(caller, int(match.group(1)), new_owner)
                    self._send_result(result, lambda _: {"transferred": True})
                else:
                    result = vault.create_content(
                        caller,
                        data.get("title"),
                        data.get("size_bytes"),
                        data.get("summary"),
                        data.get("labels"),
                    )
                    self._send_result(result, lambda content_id: {"id": content_id})

            def do_DELETE(self):
                vault = self.server_ref.vault
                path = urlparse(self.path).path
                body = self._read_body()
                if body is None:
                    return

                match = CONTENT_PATH.match(path)
                if not match:
                    self._send_error("Not found", 404)
                    return

                caller = self._caller(path, body)
                if caller is None:
                    return
                result = vault.delete_content(caller, int(match.group(1)))
                self._send_result(result, lambda _: {"deleted": True})

        return RequestHandler

    def _bind(self) -> ThreadingHTTPServer:
        handler = self._create_handler()
        self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        # Port 0 binds to any free port
        self.port = self._httpd.server_address[1]
        return self._httpd

    def start(self):
        """Start the HTTP server (blocking)."""
        httpd = self._bind()
        logger.info(f"Vault server starting on {self.host}:{self.port}")
        print(f"Vault server running on {self.url}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nShutting down...")
        finally:
            httpd.server_close()

    def start_background(self) -> threading.Thread:
        """Bind now and serve from a background thread."""
        httpd = self._bind()
        logger.info(f"Vault server starting on {self.host}:{self.port}")
        thread = threading.Thread(target=httpd.serve_forever)
        thread.daemon = True
        thread.start()
        return thread

    def stop(self):
        """Stop a server started with start_background()."""
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None


def main():
    """Server entry point."""
    import argparse

    from .config import configure_logging, load_config

    parser = argparse.ArgumentParser(description="Content vault server")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument("--data-dir", help="Vault data directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()
    config = load_config(
        args.config,
        host=args.host,
        port=args.port,
        data_dir=args.data_dir,
        log_level="DEBUG" if args.verbose else None,
    )
    configure_logging(config.log_level)

    vault = Vault(Path(config.data_dir), administrator=config.administrator)
    VaultServer(vault, host=config.host, port=config.port).start()


if __name__ == "__main__":
    main()
