"""AdminRequest model: self-service account requests awaiting review"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String

from shopdesk.database import Base, generate_uuid_string

REQUEST_PENDING = "pending"
REQUEST_APPROVED = "approved"
REQUEST_REJECTED = "rejected"


class AdminRequest(Base):
    """A pending credential request.

    The requester only supplies a free-text ``center_name``; ``center_id`` is
    bound by the reviewing super-admin at approval time. ``password_hash`` is
    computed at submission, so plaintext never reaches this table.
    """

    __tablename__ = "admin_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    username = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    center_name = Column(String(255), nullable=False)
    status = Column(String(20), default=REQUEST_PENDING, nullable=False, index=True)  # pending | approved | rejected
    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    approved_at = Column(DateTime, nullable=True)   # stamped for both approve and reject
    approved_by = Column(String(36), nullable=True)
    center_id = Column(String(36), ForeignKey("centers.id"), nullable=True)
