from sqlalchemy import Boolean, Column, DateTime, Integer, String

from portal.core.timeutils import utcnow
from portal.models.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Stored lower-cased; the unique index is what prevents concurrent duplicate registrations
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)
    is_guest = Column(Boolean, nullable=False, default=False)
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
