"""
RSVP submission model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from rsvp_app.core.db import Base

class RSVPSubmission(Base):
    __tablename__ = "rsvp_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_id = Column(String(36), ForeignKey("guests.id", ondelete="SET NULL"), nullable=True, index=True)
    link_id = Column(String(36), ForeignKey("links.id", ondelete="SET NULL"), nullable=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    full_name = Column(String(255), nullable=True)
    men_count = Column(Integer, default=0, nullable=False)
    women_count = Column(Integer, default=0, nullable=False)
    answers = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), default="submitted")
    submitted_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="submissions")
