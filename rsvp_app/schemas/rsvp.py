"""
RSVP submission schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

class RSVPSubmitRequest(BaseModel):
    """Form submission from a resolved invitation"""
    event_id: str
    guest_id: Optional[str] = None
    link_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    men_count: int = Field(0, ge=0)
    women_count: int = Field(0, ge=0)
    answers: Dict[str, Any] = {}

class SubmissionUpdate(BaseModel):
    full_name: Optional[str] = None
    men_count: Optional[int] = Field(None, ge=0)
    women_count: Optional[int] = Field(None, ge=0)
    answers: Optional[Dict[str, Any]] = None

class SubmissionResponse(BaseModel):
    id: str
    event_id: str
    guest_id: Optional[str] = None
    link_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    men_count: int
    women_count: int
    answers: Dict[str, Any]
    status: str
    submitted_at: datetime

    class Config:
        from_attributes = True
