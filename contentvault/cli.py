#!/usr/bin/env python3
"""
Content Vault CLI

Command-line interface to a local vault directory:
  contentvault init - Create a vault and fix its administrator
  contentvault identity - Manage caller identities
  contentvault create / transfer / delete - Mutate content as a caller
  contentvault show / owner / exists / verify / stats - Read content
  contentvault journal - Show committed mutations
  contentvault serve - Run the HTTP server

Usage:
  contentvault init --administrator <name>
  contentvault create --as <name> --title <t> --size <n> --summary <s> -l <label> [-l ...]
  contentvault transfer <id> <new-owner> --as <name>
  contentvault show <id> --as <name>
"""

import argparse
import json
import sys
from typing import List, Optional

import yaml

from .config import VaultConfig, configure_logging, load_config
from .errors import VaultResult
from .vault import Vault


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _open_vault(config: VaultConfig) -> Vault:
    if not Vault.exists(config.data_dir):
        _fail(f"No vault at {config.data_dir}. Run 'contentvault init' first.")
    try:
        return Vault(config.data_dir, administrator=config.administrator)
    except ValueError as e:
        _fail(str(e))


def _require_identity(vault: Vault, username: str) -> str:
    if username not in vault.identities:
        _fail(f"Unknown identity {username}. Create it with 'contentvault identity create'.")
    return username


def _unwrap(result: VaultResult):
    if not result.success:
        _fail(result.error.value)
    return result.value


def cmd_init(args, config: VaultConfig):
    """Create a vault."""
    if Vault.exists(config.data_dir):
        _fail(f"A vault already exists at {config.data_dir}")
    if not config.administrator:
        _fail("An administrator is required (--administrator or config file)")

    vault = Vault(config.data_dir, administrator=config.administrator)
    print(f"Vault created at {vault.base_dir}")
    print(f"Administrator: {vault.registry.administrator}")


def cmd_identity(args, config: VaultConfig):
    """Create or list identities."""
    vault = _open_vault(config)

    if args.identity_command == "create":
        try:
            identity = vault.identities.create(args.username)
        except ValueError as e:
            _fail(str(e))
        print(f"Created identity: {identity.username}")
        if args.export:
            with open(args.export, "w") as f:
                json.dump(identity.to_dict(), f, indent=2)
            print(f"Keys exported to: {args.export}")
    else:
        for identity in vault.identities.list():
            print(identity.username)


def cmd_create(args, config: VaultConfig):
    vault = _open_vault(config)
    caller = _require_identity(vault, args.caller)
    content_id = _unwrap(vault.create_content(
        caller, args.title, args.size, args.summary, args.label or [],
    ))
    print(f"Created content {content_id}")


def cmd_transfer(args, config: VaultConfig):
    vault = _open_vault(config)
    caller = _require_identity(vault, args.caller)
    _unwrap(vault.transfer_ownership(caller, args.content_id, args.new_owner))
    print(f"Content {args.content_id} now owned by {args.new_owner}")


def cmd_delete(args, config: VaultConfig):
    vault = _open_vault(config)
    caller = _require_identity(vault, args.caller)
    _unwrap(vault.delete_content(caller, args.content_id))
    print(f"Deleted content {args.content_id}")


def cmd_show(args, config: VaultConfig):
    vault = _open_vault(config)
    caller = _require_identity(vault, args.caller)
    record = _unwrap(vault.fetch_content_details(caller, args.content_id))
    if args.json:
        print(json.dumps(record.to_dict(), indent=2))
        return
    print(f"Content {record.id}: {record.title}")
    print(f"  Owner: {record.creator}")
    print(f"  Size: {record.size_bytes} bytes")
    print(f"  Created at height: {record.created_at}")
    print(f"  Summary: {record.summary}")
    print(f"  Labels: {', '.join(record.labels)}")


def cmd_owner(args, config: VaultConfig):
    vault = _open_vault(config)
    print(_unwrap(vault.fetch_content_owner(args.content_id)))


def cmd_exists(args, config: VaultConfig):
    vault = _open_vault(config)
    print("yes" if vault.check_content_existence(args.content_id) else "no")


def cmd_verify(args, config: VaultConfig):
    vault = _open_vault(config)
    check = _unwrap(vault.verify_user_permissions(args.content_id, args.user))
    print(f"Explicit permission: {check.has_explicit_permission}")
    print(f"Owner: {check.is_owner}")
    print(f"Can access: {check.can_access}")


def cmd_stats(args, config: VaultConfig):
    vault = _open_vault(config)
    stats = _unwrap(vault.fetch_vault_statistics())
    print(f"Total items: {stats.total_items}")
    print(f"Administrator: {stats.administrator}")
    print(f"Height: {vault.clock.current()}")


def cmd_journal(args, config: VaultConfig):
    vault = _open_vault(config)
    if args.content_id is not None:
        entries = vault.journal.find_by_content(args.content_id)
    else:
        entries = vault.journal.list()
    for entry in entries:
        extra = "".join(f" {k}={v}" for k, v in entry.details.items())
        print(f"[{entry.height}] {entry.action} {entry.content_id} by {entry.caller}{extra}")


def cmd_serve(args, config: VaultConfig):
    from .server import VaultServer

    vault = _open_vault(config)
    VaultServer(vault, host=config.host, port=config.port).start()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contentvault",
        description="Content Vault - permissioned content registry",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--data-dir", help="Vault data directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    init_parser = subparsers.add_parser("init", help="Create a vault")
    init_parser.add_argument("--administrator", help="Deployment administrator identity")

    identity_parser = subparsers.add_parser("identity", help="Manage identities")
    identity_sub = identity_parser.add_subparsers(dest="identity_command")
    identity_create = identity_sub.add_parser("create", help="Create an identity")
    identity_create.add_argument("username", help="Username")
    identity_create.add_argument("--export", help="Write the identity and keys to this file")
    identity_sub.add_parser("list", help="List identities")

    create_parser = subparsers.add_parser("create", help="Register content")
    create_parser.add_argument("--as", dest="caller", required=True, help="Caller identity")
    create_parser.add_argument("--title", required=True, help="Title (1-64 chars)")
    create_parser.add_argument("--size", type=int, required=True, help="Size in bytes")
    create_parser.add_argument("--summary", required=True, help="Summary (1-128 chars)")
    create_parser.add_argument("-l", "--label", action="append",
                               help="Label (1-32 chars, repeat up to 10 times)")

    transfer_parser = subparsers.add_parser("transfer", help="Transfer ownership")
    transfer_parser.add_argument("content_id", type=int, help="Content id")
    transfer_parser.add_argument("new_owner", help="New owner identity")
    transfer_parser.add_argument("--as", dest="caller", required=True, help="Caller identity")

    delete_parser = subparsers.add_parser("delete", help="Delete content")
    delete_parser.add_argument("content_id", type=int, help="Content id")
    delete_parser.add_argument("--as", dest="caller", required=True, help="Caller identity")

    show_parser = subparsers.add_parser("show", help="Show content details")
    show_parser.add_argument("content_id", type=int, help="Content id")
    show_parser.add_argument("--as", dest="caller", required=True, help="Caller identity")
    show_parser.add_argument("--json", action="store_true", help="Print as JSON")

    owner_parser = subparsers.add_parser("owner", help="Show content owner")
    owner_parser.add_argument("content_id", type=int, help="Content id")

    exists_parser = subparsers.add_parser("exists", help="Check content existence")
    exists_parser.add_argument("content_id", type=int, help="Content id")

    verify_parser = subparsers.add_parser("verify", help="Check a user's permissions")
    verify_parser.add_argument("content_id", type=int, help="Content id")
    verify_parser.add_argument("user", help="User identity")

    subparsers.add_parser("stats", help="Show vault statistics")

    journal_parser = subparsers.add_parser("journal", help="Show committed mutations")
    journal_parser.add_argument("--content", dest="content_id", type=int,
                                help="Only entries for this content id")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")

    return parser


COMMANDS = {
    "init": cmd_init,
    "identity": cmd_identity,
    "create": cmd_create,
    "transfer": cmd_transfer,
    "delete": cmd_delete,
    "show": cmd_show,
    "owner": cmd_owner,
    "exists": cmd_exists,
    "verify": cmd_verify,
    "stats": cmd_stats,
    "journal": cmd_journal,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config(
            args.config,
            data_dir=args.data_dir,
            administrator=getattr(args, "administrator", None),
            host=getattr(args, "host", None),
            port=getattr(args, "port", None),
            log_level="DEBUG" if args.verbose else None,
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(f"Could not load config: {e}")
    configure_logging(config.log_level)

    command(args, config)


if __name__ == "__main__":
    main()
