from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from portal.core.timeutils import utcnow
from portal.models.base import Base


class AdminNote(Base):
    __tablename__ = "admin_notes"

    id = Column(Integer, primary_key=True, index=True)
    # Notes are private to the admin who wrote them
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    color = Column(String(50), nullable=False, default="default")
    is_pinned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
