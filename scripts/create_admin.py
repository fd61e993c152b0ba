"""
Bootstrap the first administrator.

    ADMIN_EMAIL=hr@acme.com ADMIN_PASSWORD=... python scripts/create_admin.py
"""
import os
import sys

# Ensure we can import app modules
sys.path.append(os.getcwd())

from app.core.init_system import create_admin_user, init_system_data
from app.core.logging import setup_logging
from app.database import SessionLocal, init_db


def main():
    setup_logging()
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        sys.exit("ADMIN_EMAIL and ADMIN_PASSWORD must be set")

    init_db()
    init_system_data()
    db = SessionLocal()
    try:
        if create_admin_user(db, email, password) is None:
            sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
