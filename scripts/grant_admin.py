#!/usr/bin/env python3
"""Grant (or revoke) the admin flag for a user (idempotent).

Usage:
  python scripts/grant_admin.py --name alice
  python scripts/grant_admin.py --name alice --revoke
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.ems.models import User
from scripts._db_utils import database_url, script_session


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--name", required=True, help="User name")
    parser.add_argument("--revoke", action="store_true", help="Remove the admin flag instead")
    args = parser.parse_args()

    with script_session(database_url()) as s:
        user = s.query(User).filter(User.name == args.name).one_or_none()
        if not user:
            print(f"User not found: {args.name}")
            sys.exit(1)
        wanted = not args.revoke
        if user.is_admin == wanted:
            print(f"Nothing to do: {args.name} is_admin={wanted}")
            return
        user.is_admin = wanted
    print(f"{args.name}: is_admin={wanted}")


if __name__ == "__main__":
    main()
