"""Center model: the tenant boundary"""
from datetime import datetime

from sqlalchemy import Column, DateTime, String

from shopdesk.database import Base, generate_uuid_string


class Center(Base):
    """A physical service center.

    Every tenant-owned row carries a ``center_id`` pointing here. Centers are
    read for scoping and for the approval center picker; this service never
    mutates them.
    """

    __tablename__ = "centers"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    name = Column(String(255), nullable=False)
    code = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
