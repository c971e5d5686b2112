#!/usr/bin/env python3
"""Set or replace the /manage admin password."""
import argparse
import getpass
import sys

from dotenv import load_dotenv

load_dotenv()

from brotherhood_kos.core.errors import ValidationError
from brotherhood_kos.services.admin_auth import AdminAuthService


def main() -> int:
    parser = argparse.ArgumentParser(description="Set the Brotherhood KOS admin password")
    parser.add_argument(
        "--password",
        help="Password to store (prompted for when omitted)",
    )
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("New admin password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("❌ Passwords do not match")
            return 1

    auth = AdminAuthService()
    try:
        auth.set_password(password)
    except ValidationError as e:
        print(f"❌ {e.message}")
        return 1

    print("✅ Admin password updated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
