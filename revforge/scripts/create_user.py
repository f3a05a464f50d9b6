"""
Create a user with any role (registration only ever creates viewers). Run from project root:
  python -m revforge.scripts.create_user EMAIL PASSWORD [role] [--name NAME]
Example:
  python -m revforge.scripts.create_user admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from revforge.core.config import get_settings
from revforge.core.database import SessionLocal
from revforge.core.logging import configure_logging
from revforge.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from revforge.services import users
from revforge.services.rbac import UserRole

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a RevenueForge user.")
    parser.add_argument("email", help="Account email")
    parser.add_argument(
        "password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)"
    )
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.VIEWER.value,
        choices=[r.value for r in UserRole],
    )
    parser.add_argument("--name", default=None, help="Display name")
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(get_settings())
    args = build_parser().parse_args(argv)

    email = args.email.strip()
    if not users.is_valid_email(email):
        print("Invalid email format.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        if users.get_user_by_email(db, email) is not None:
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        user = users.create_user(db, email, args.password, args.name, UserRole(args.role))
        db.commit()
        logger.info("Provisioned user", extra={"user_id": user.id, "role": user.role})
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Could not create user: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
