"""Recreate the local SQLite booking database and seed the admin account."""
import os
import pathlib
import sys

from sqlalchemy.exc import SQLAlchemyError

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

import database  # noqa: E402
import models  # noqa: E402,F401
from database import Base  # noqa: E402
from seed import seed_admin_user  # noqa: E402


def main() -> int:
    url = database.DATABASE_URL
    if not url.startswith("sqlite:///"):
        print(f"Skipping reset: database is not sqlite (got {database.safe_url})")
        return 0

    db_path = pathlib.Path(url.replace("sqlite:///", "", 1)).resolve()
    if db_path.exists():
        database.engine.dispose()
        try:
            db_path.unlink()
            print(f"Removed existing DB file: {db_path}")
        except OSError as exc:
            print(f"Failed to remove {db_path}: {exc}")
            return 1
    else:
        print(f"No existing DB file at: {db_path} (skip remove)")

    try:
        Base.metadata.create_all(bind=database.engine)
        print("Created users, appointments and payment_orders tables.")
    except SQLAlchemyError as exc:
        print(f"Failed to create tables: {exc}")
        return 1

    if os.getenv("ADMIN_EMAIL"):
        seed_admin_user()
    return 0


if __name__ == "__main__":
    sys.exit(main())
