"""
Event model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship

from rsvp_app.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=True)
    short_code = Column(String(20), unique=True, nullable=True, index=True)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    theme = Column(JSON, nullable=True)

    # Per-event form flags
    accordion_form_enabled = Column(Boolean, default=False)
    modern_style_enabled = Column(Boolean, default=False)
    site_title = Column(String(255), nullable=True)
    site_description = Column(Text, nullable=True)

    # Client dashboard credentials
    client_username = Column(String(100), nullable=True, index=True)
    client_password = Column(String(255), nullable=True)
    client_access_enabled = Column(Boolean, default=False)

    # RSVP window
    rsvp_enabled = Column(Boolean, default=True)
    rsvp_open_date = Column(DateTime, nullable=True)
    rsvp_close_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    guests = relationship("Guest", back_populates="event", cascade="all, delete-orphan")
    links = relationship("Link", back_populates="event", cascade="all, delete-orphan")
    submissions = relationship("RSVPSubmission", back_populates="event", cascade="all, delete-orphan")
    custom_fields = relationship("CustomFieldConfig", back_populates="event", cascade="all, delete-orphan")
    languages = relationship("EventLanguage", back_populates="event", cascade="all, delete-orphan")

    @property
    def display_code(self) -> str:
        """Short code when one has been generated, raw id otherwise"""
        return self.short_code or self.id
