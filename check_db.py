"""
Check that the configured database is reachable and report the user count.

Usage: python check_db.py
"""
import sys

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from src.config import settings


def check_connection() -> bool:
    try:
        engine = create_engine(settings.database_url)

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

            if not inspect(conn).has_table("users"):
                print("Connected, but the users table does not exist yet. Run 'alembic upgrade head'.")
                return True

            count = conn.execute(text("SELECT COUNT(*) FROM users")).scalar_one()
            print(f"Connected to database. Users: {count}")
            return True

    except SQLAlchemyError as e:
        print(f"Database connection failed: {e}")
        return False


if __name__ == "__main__":
    sys.exit(0 if check_connection() else 1)
