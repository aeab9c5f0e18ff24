"""
Create an account with any role (e.g. the first admin, fleet managers, drivers). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD NAME [role] [--phone PHONE]
Example:
  python -m app.scripts.create_user admin@example.com 'S3cure!pass' 'Fleet Admin' admin
"""
import argparse
import logging
import sys

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.core.database import session_scope
from app.core.exceptions import Conflict
from app.core.security import NAME_MAX_LEN, hash_password, password_strength_errors
from app.models.user import ROLE_USER, ROLES
from app.services.accounts import SqlAccountStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Fleet API account (registration only creates 'user').")
    parser.add_argument("email", help="Email (case-insensitive, unique)")
    parser.add_argument("password", help="Password (8-128 chars, mixed case, digit, special)")
    parser.add_argument("name", help="Display name")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=ROLES)
    parser.add_argument("--phone", default=None, help="Phone number")
    args = parser.parse_args(argv)

    # Same check as the API, so every account created here can log in.
    try:
        email = _email_adapter.validate_python(args.email.strip())
    except ValidationError as e:
        print(f"Invalid email: {e.errors()[0]['msg']}", file=sys.stderr)
        return 1
    name = args.name.strip()
    if not name or len(name) > NAME_MAX_LEN:
        print("Invalid name length.", file=sys.stderr)
        return 1
    missing = password_strength_errors(args.password)
    if missing:
        print("Password must contain " + ", ".join(missing) + ".", file=sys.stderr)
        return 1

    with session_scope() as db:
        store = SqlAccountStore(db)
        if store.find_by_email(email) is not None:
            print(f"Account '{email}' already exists.", file=sys.stderr)
            return 1
        try:
            user = store.create(
                email=email,
                password_hash=hash_password(args.password),
                name=name,
                phone=args.phone,
                role=args.role,
            )
        except Conflict as e:
            print(e.message, file=sys.stderr)
            return 1
        logger.info("Created account", extra={"account_id": user.id, "role": user.role})
        print(f"Created account '{user.email}' with role '{user.role}'.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
