"""
Guest-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

class GuestCreate(BaseModel):
    """Schema for creating a guest"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    group_name: Optional[str] = None
    language: Optional[str] = None
    notes: Optional[str] = None
    men_count: int = Field(0, ge=0)
    women_count: int = Field(0, ge=0)

class GuestUpdate(BaseModel):
    """Schema for updating a guest"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    group_name: Optional[str] = None
    language: Optional[str] = None
    notes: Optional[str] = None
    men_count: Optional[int] = Field(None, ge=0)
    women_count: Optional[int] = Field(None, ge=0)

class GuestResponse(BaseModel):
    """Guest response schema"""
    id: str
    event_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    group_name: Optional[str] = None
    short_code: Optional[str] = None
    men_count: int
    women_count: int
    created_at: datetime

    class Config:
        from_attributes = True
