"""
Create a pre-verified local account (e.g. the first admin). Run from project root:
  python -m app.scripts.create_account EMAIL PASSWORD NAME [role]
Example:
  python -m app.scripts.create_account admin@example.com your-secure-password "Site Admin" admin
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models.account import Account, is_valid_email, normalize_email
from app.repositories.accounts import AccountRepository
from app.services.errors import ConflictError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a verified email/password account.")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("name", help="Display name")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    email = normalize_email(args.email)
    if not is_valid_email(email):
        print("Please add a valid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    name = args.name.strip()
    if not name:
        print("Name must be non-empty.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        repository = AccountRepository(db)
        if repository.find_by_email(email) is not None:
            print(f"Account '{email}' already exists.", file=sys.stderr)
            return 1
        account = Account.new_local(
            name=name,
            email=email,
            password=args.password,
            role=args.role,
            rounds=settings.BCRYPT_ROUNDS,
        )
        account.is_email_verified = True
        try:
            account = repository.create(account)
        except ConflictError as e:
            print(e.message, file=sys.stderr)
            return 1
        logger.info("Account created", extra={"account_id": account.id, "role": account.role})
        print(f"Created account '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
