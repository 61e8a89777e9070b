"""AdminUser model: named center administrators"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from shopdesk.database import Base, generate_uuid_string


class AdminUser(Base):
    """An administrator bound to exactly one center.

    ``is_superadmin`` and ``is_active`` are never copied into session tokens;
    the guard re-reads them on every request so demotion or deactivation takes
    effect immediately.
    """

    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    email = Column(String(255), unique=True, nullable=True, index=True)
    username = Column(String(255), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=False)                      # bcrypt
    center_id = Column(String(36), ForeignKey("centers.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superadmin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    center = relationship("Center")
