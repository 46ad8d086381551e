"""
Create an approved account (e.g. the first admin). Run from project root:
  python -m hearth.scripts.create_user FULL_NAME EMAIL PASSWORD [role]
Example:
  python -m hearth.scripts.create_user "Site Admin" admin@example.com your-secure-password admin
"""
import argparse
import sys

from hearth.core.database import SessionLocal
from hearth.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    is_valid_email,
    normalize_email,
)
from hearth.models.user import ROLE_ADMIN, ROLE_MEMBER, STATUS_APPROVED, User


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an approved Hearth account.")
    parser.add_argument("full_name", help="Display name")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=ROLE_ADMIN, choices=[ROLE_MEMBER, ROLE_ADMIN])
    args = parser.parse_args(argv)

    full_name = args.full_name.strip()
    email = normalize_email(args.email)
    if len(full_name) < 2:
        print("Full name must be at least 2 characters.", file=sys.stderr)
        return 1
    if not is_valid_email(email):
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            full_name=full_name,
            email=email,
            password_hash=hash_password(args.password),
            role=args.role,
            status=STATUS_APPROVED,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
