"""
User Model - Stores the identity records behind the session API.

Rows are only ever created by registration; nothing in the service updates
or deletes them.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from ..database import Base

class User(Base):
    """
    User Model - Stores all user information in the system

    Fields:
    - id: Primary key for user identification
    - name: Display name
    - email: Unique, lower-cased email address used for login
    - password_hash: Securely hashed password (never store raw passwords)
    - created_at: When the user registered
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # The unique index is what makes concurrent duplicate registrations fail
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
