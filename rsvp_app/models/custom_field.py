"""
Custom form field configuration model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from rsvp_app.core.db import Base

FIELD_TYPES = ("text", "number", "select", "checkbox", "textarea", "email")

class CustomFieldConfig(Base):
    __tablename__ = "custom_fields_config"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    link_type = Column(String(20), nullable=False)
    key = Column(String(100), nullable=False)
    label = Column(String(255), nullable=False)
    label_translations = Column(JSON, nullable=True)  # locale -> label
    field_type = Column(String(20), nullable=False, default="text")
    required = Column(Boolean, default=False)
    options = Column(JSON, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="custom_fields")

    __table_args__ = (
        UniqueConstraint("event_id", "link_type", "key", name="uq_custom_fields_event_type_key"),
    )
