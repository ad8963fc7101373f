"""
Link model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Index, text
from sqlalchemy.orm import relationship

from rsvp_app.core.db import Base

LINK_TYPE_PERSONAL = "personal"
LINK_TYPE_OPEN = "open"
OPEN_LINK_SLUG = "open"

class Link(Base):
    __tablename__ = "links"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_id = Column(String(36), ForeignKey("guests.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(20), nullable=False, default=LINK_TYPE_PERSONAL)
    slug = Column(String(500), nullable=False)
    is_active = Column(Boolean, default=True)
    max_uses = Column(Integer, nullable=True)
    uses_count = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="links")

    # One open link per event; name links may repeat
    __table_args__ = (
        Index("ix_links_event_slug", "event_id", "slug"),
        Index(
            "uq_links_event_open",
            "event_id",
            unique=True,
            sqlite_where=text("type = 'open' AND slug = 'open'"),
            postgresql_where=text("type = 'open' AND slug = 'open'"),
        ),
    )
