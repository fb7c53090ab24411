# src/pkg_user_admin/admin/cli.py

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .client import KeycloakAdminProvider
from .env import settings_from_env


def _load_payload(raw: str) -> dict[str, Any]:
    """Inline JSON, or @path to a JSON file."""
    text = Path(raw[1:]).read_text(encoding="utf-8") if raw.startswith("@") else raw
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("user data must be a JSON object")
    return data


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pkg-user-admin",
        description="Manage Keycloak realm users (configured from KEYCLOAK_* env vars)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a user, or update it if the username exists.")
    create.add_argument(
        "--data",
        "-d",
        required=True,
        help="User representation as JSON, or @file.json",
    )

    get = sub.add_parser("get", help="Show one user by id.")
    get.add_argument("user_id")

    listing = sub.add_parser("list", help="List users (single page, max 10000).")
    listing.add_argument(
        "--query",
        "-q",
        help='Raw query string, e.g. "?email=a@example.com"',
    )

    delete = sub.add_parser("delete", help="Delete a user by id.")
    delete.add_argument("user_id")

    update = sub.add_parser("update", help="Update a user by id.")
    update.add_argument("user_id")
    update.add_argument(
        "--data",
        "-d",
        required=True,
        help="User representation as JSON, or @file.json",
    )

    return parser.parse_args(args=argv)


async def _run(args: argparse.Namespace, kc: KeycloakAdminProvider) -> dict[str, Any]:
    if args.command == "create":
        user_id = await kc.create_user(_load_payload(args.data))
        return {"id": user_id}
    if args.command == "get":
        user = await kc.get_user(args.user_id)
        return {"user": user.to_dict()}
    if args.command == "list":
        users = await kc.get_user_list(args.query)
        return {"count": len(users), "users": users}
    if args.command == "delete":
        resp = await kc.delete_user(args.user_id)
        return {"id": args.user_id, "status_code": resp.status_code}
    if args.command == "update":
        await kc.update_user(_load_payload(args.data), args.user_id)
        return {"id": args.user_id}
    raise ValueError(f"unknown command {args.command!r}")


async def _main(args: argparse.Namespace) -> dict[str, Any]:
    async with KeycloakAdminProvider(settings_from_env()) as kc:
        return await _run(args, kc)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        summary = asyncio.run(_main(args))
        json.dump({"ok": True, **summary}, sys.stdout, indent=2)
        sys.stdout.write("\n")
    except Exception as exc:  # noqa: BLE001
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
