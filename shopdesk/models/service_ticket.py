"""Service ticket model: after-sales (A/S) requests"""
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from shopdesk.database import Base, generate_uuid_string


class ServiceTicket(Base):
    """An after-sales request. Same shape as a receipt; photos live under ``<center_id>/as/``."""

    __tablename__ = "service_tickets"

    id = Column(String(36), primary_key=True, default=generate_uuid_string)
    center_id = Column(String(36), ForeignKey("centers.id"), nullable=False, index=True)
    vehicle_name = Column(String(255), nullable=False)
    vehicle_number = Column(String(64), nullable=False, index=True)
    mileage_km = Column(Integer, nullable=False)
    customer_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    purchase_date = Column(Date, nullable=True)
    symptom = Column(Text, nullable=True)
    service_detail = Column(Text, nullable=True)
    vin_image_url = Column(Text, nullable=True)
    engine_image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
