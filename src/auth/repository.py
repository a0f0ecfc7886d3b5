"""
Credential store backed by the ``users`` table.

Emails are normalized (trimmed, lower-cased) on every insert and lookup, so
uniqueness is case-insensitive.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .exceptions import EmailAlreadyExistsException
from .models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    """Looks up and inserts users through a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(User.email == normalize_email(email))
        ).scalar_one_or_none()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(User)).scalar_one()

    def insert(self, name: str, email: str, password_hash: str) -> User:
        """
        Insert a new user in a single commit.

        Uniqueness is enforced by the database, not by a prior lookup: a
        registration that loses a race against another one with the same
        email fails here with ``EmailAlreadyExistsException``.

        Raises:
            EmailAlreadyExistsException: If the email is already taken
        """
        user = User(name=name, email=normalize_email(email), password_hash=password_hash)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Insert rejected by unique email constraint")
            raise EmailAlreadyExistsException()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user
