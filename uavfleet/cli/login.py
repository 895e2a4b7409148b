from __future__ import annotations

import argparse
import getpass
import sys
from typing import Sequence

from uavfleet.cli.context import build_context


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Log in to (or out of) the UAV control center")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--username", help="Account name")
    g.add_argument("--logout", action="store_true", help="Forget the saved session")
    g.add_argument("--status", action="store_true", help="Show whether a valid session exists")
    p.add_argument("--password", help="Password (prompted when omitted)")
    p.add_argument(
        "--remember-me", action="store_true", help="Ask the server for a long-lived session"
    )
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not (args.username or args.logout or args.status):
        parser.error("one of --username, --logout or --status is required")

    ctx = build_context()
    auth = ctx.auth

    if args.logout:
        auth.logout()
        print("Logged out.")
        return 0

    if args.status:
        if not auth.check_session():
            print("Not logged in.")
            return 1
        user = auth.state.user
        print(f"Logged in as {user.full_name if user else 'unknown user'}.")
        return 0

    password = args.password if args.password is not None else getpass.getpass("Password: ")
    if not auth.login(args.username, password, remember_me=bool(args.remember_me)):
        print(f"Login failed: {auth.state.error}", file=sys.stderr)
        return 1
    user = auth.state.user
    print(f"Logged in as {user.full_name if user else args.username}.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
