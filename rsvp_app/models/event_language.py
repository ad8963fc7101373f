"""
Per-event language model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from rsvp_app.core.db import Base

class EventLanguage(Base):
    __tablename__ = "event_languages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    locale = Column(String(10), nullable=False)
    is_default = Column(Boolean, default=False)
    translations = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="languages")

    __table_args__ = (
        UniqueConstraint("event_id", "locale", name="uq_event_languages_event_locale"),
    )
