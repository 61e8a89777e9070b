"""Inquiry model: customer contact requests, owned by a center"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from shopdesk.database import Base, generate_uuid_string


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    center_id = Column(String(36), ForeignKey("centers.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    contacted = Column(Boolean, default=False, nullable=False)
    note = Column(Text, nullable=True)
    note_updated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
