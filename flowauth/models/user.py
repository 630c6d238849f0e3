"""User model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from flowauth.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Application user and its outstanding one-time token hashes."""

    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), nullable=True, index=True)
    verification_token_expiry = Column(DateTime, nullable=True)
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} verified={self.is_email_verified}>"
