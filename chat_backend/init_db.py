"""Initialize the database with tables, optionally issuing a development session"""

import argparse

from chat_backend.db.base import Base
from chat_backend.db.session import engine, SessionLocal
from chat_backend.db import models  # noqa: F401  registers tables
from chat_backend.services.auth import create_session


def init_db():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✅ Database initialized successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--session-for", metavar="EMAIL",
                        help="create the user if needed and print a new session token")
    args = parser.parse_args()

    init_db()
    if args.session_for:
        token = create_session(SessionLocal, args.session_for)
        print(f"Session token for {args.session_for}: {token}")
