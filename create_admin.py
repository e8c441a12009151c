"""
Create the initial admin login.

    create-admin --email admin@company.com --password 'change-me'

Falls back to BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD / BOOTSTRAP_ADMIN_NAME.
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from db import SessionLocal, engine
from models import Base
from services.bootstrap import ensure_default_admin

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the default admin account")
    parser.add_argument("--email", default=os.getenv("BOOTSTRAP_ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("BOOTSTRAP_ADMIN_PASSWORD"))
    parser.add_argument("--name", default=os.getenv("BOOTSTRAP_ADMIN_NAME", "Administrator"))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if not args.email or not args.password:
        parser.error("--email and --password are required (or set BOOTSTRAP_ADMIN_EMAIL/BOOTSTRAP_ADMIN_PASSWORD)")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user, created = ensure_default_admin(db, args.email, args.password, args.name)
        if created:
            print("Admin user created successfully!")
            print(f"Email: {user.email}")
            print("Change password after first login!")
        else:
            print("Admin user already exists")
            print(f"Email: {user.email}")
        return 0
    except Exception:
        db.rollback()
        logger.exception("Failed to create admin user")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
