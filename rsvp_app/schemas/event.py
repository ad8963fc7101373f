"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class EventCreate(BaseModel):
    """Schema for creating an event"""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    theme: Optional[Dict[str, Any]] = None
    languages: List[str] = []

class EventUpdate(BaseModel):
    """Partial event patch"""
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    theme: Optional[Dict[str, Any]] = None
    accordion_form_enabled: Optional[bool] = None
    modern_style_enabled: Optional[bool] = None
    site_title: Optional[str] = None
    site_description: Optional[str] = None
    rsvp_enabled: Optional[bool] = None
    rsvp_open_date: Optional[datetime] = None
    rsvp_close_date: Optional[datetime] = None

class EventResponse(BaseModel):
    """Basic event response"""
    id: str
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    short_code: Optional[str] = None
    slug: str
    theme: Optional[Dict[str, Any]] = None
    accordion_form_enabled: Optional[bool] = None
    modern_style_enabled: Optional[bool] = None
    rsvp_enabled: Optional[bool] = None
    rsvp_open_date: Optional[datetime] = None
    rsvp_close_date: Optional[datetime] = None
    client_access_enabled: Optional[bool] = None
    created_at: datetime

    class Config:
        from_attributes = True

class EventStatistics(BaseModel):
    """Aggregated RSVP numbers for an event"""
    total_guests: int
    responded_guests: int
    pending_guests: int
    total_submissions: int
    confirmed_men: int
    confirmed_women: int
    confirmed_total: int

class ClientCredentials(BaseModel):
    """Client dashboard credentials for an event"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    enabled: bool = True

class ClientLoginRequest(BaseModel):
    username: str
    password: str
