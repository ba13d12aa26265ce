"""CLI tool for admin operations.

Usage:
    python -m journal.cli create-user
    python -m journal.cli reconcile
    python -m journal.cli import-csv <username> <account_id> <path>
"""

import sys
import getpass
from pathlib import Path

from sqlmodel import Session, select

from journal.database import engine, create_db_and_tables
from journal.models.trade import Trade
from journal.models.trading_account import TradingAccount
from journal.models.user import User
from journal.services.auth import hash_password, generate_totp_secret, get_totp_uri
from journal.services.balance import AccountNotFoundError
from journal.services.csv_import import CsvImportError, import_trades_csv
from journal.services.trade_repair import repair_trades
from journal.utils.logging import setup_logging


def create_user():
    """Create a user, optionally enrolling TOTP."""
    create_db_and_tables()

    username = input("Username: ").strip()
    if not username:
        print("Username cannot be empty.")
        sys.exit(1)

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            print(f"User '{username}' already exists.")
            sys.exit(1)

    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("Passwords do not match.")
        sys.exit(1)

    totp_secret = None
    if input("Enable TOTP? [y/N]: ").strip().lower() == "y":
        totp_secret = generate_totp_secret()

    user = User(
        username=username,
        hashed_password=hash_password(password),
        totp_secret=totp_secret,
    )
    with Session(engine) as session:
        session.add(user)
        session.commit()

    print(f"\nUser '{username}' created successfully.")
    if totp_secret:
        print(f"\nTOTP Secret: {totp_secret}")
        print(f"TOTP URI: {get_totp_uri(totp_secret, username)}")


def reconcile():
    """Repair every trade and reconcile every account."""
    create_db_and_tables()

    with Session(engine) as session:
        account_ids = list(session.exec(select(TradingAccount.id)).all())
        trades = session.exec(select(Trade).order_by(Trade.id)).all()
        report = repair_trades(session, trades, extra_account_ids=account_ids)

    print(
        f"Repaired {report.repaired} trades; "
        f"{report.balances_updated} of {len(report.reconciliations)} account balances corrected."
    )


def import_csv(username: str, account_id: str, path: str):
    """Import a broker CSV export from disk."""
    create_db_and_tables()

    if not account_id.isdigit():
        print(f"Invalid account id: {account_id}")
        sys.exit(1)

    file = Path(path)
    if not file.is_file():
        print(f"File not found: {path}")
        sys.exit(1)

    with Session(engine) as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if not user:
            print(f"Unknown user: {username}")
            sys.exit(1)
        try:
            result = import_trades_csv(
                session,
                user_id=user.id,
                account_id=int(account_id),
                file_name=file.name,
                content=file.read_bytes(),
            )
        except (CsvImportError, AccountNotFoundError) as e:
            print(f"Import failed: {e}")
            sys.exit(1)

    print(result.message)
    if result.balance is not None:
        print(f"Account balance: {result.balance:.2f}")


def main():
    setup_logging()

    if len(sys.argv) < 2:
        print("Usage: python -m journal.cli <command>")
        print("Commands: create-user, reconcile, import-csv <username> <account_id> <path>")
        sys.exit(1)

    command = sys.argv[1]
    if command == "create-user":
        create_user()
    elif command == "reconcile":
        reconcile()
    elif command == "import-csv" and len(sys.argv) == 5:
        import_csv(*sys.argv[2:5])
    else:
        print(f"Unknown command or wrong arguments: {' '.join(sys.argv[1:])}")
        sys.exit(1)


if __name__ == "__main__":
    main()
