"""Print a bcrypt hash for ADMIN_PASSWORD_HASH."""

import argparse
import getpass

from eduportal.services.auth import hash_password


def main() -> None:
    parser = argparse.ArgumentParser(description="Hash an admin password with bcrypt.")
    parser.add_argument("--password", help="Password to hash (prompted if omitted).")
    args = parser.parse_args()
    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        parser.error("password must not be empty")
    print(hash_password(password))


if __name__ == "__main__":
    main()
