#!/usr/bin/env python3
"""Mint a developer or user identity token signed with JWT_SECRET.

Usage:
    python scripts/issue_identity_token.py --id 42 --email dev@example.com
    python scripts/issue_identity_token.py --id 7 --email a@b.com --type user --username alice
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from waitlist_api.api.middleware import create_developer_jwt, create_user_jwt


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue an identity token")
    parser.add_argument("--id", required=True, dest="user_id")
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", default="")
    parser.add_argument("--type", choices=["developer", "user"], default="developer")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    issue = create_developer_jwt if args.type == "developer" else create_user_jwt
    print(issue(args.user_id, args.email, args.username))
    return 0


if __name__ == "__main__":
    sys.exit(main())
