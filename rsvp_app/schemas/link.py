"""
Link-related Pydantic schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

class NameLinkCreate(BaseModel):
    name: str = Field(..., min_length=1)

class NumberedLinksCreate(BaseModel):
    count: int = Field(5, ge=1, le=100)

class LinkUpdate(BaseModel):
    is_active: Optional[bool] = None
    max_uses: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None
    settings: Optional[Dict[str, Any]] = None

class LinkResponse(BaseModel):
    id: str
    event_id: str
    guest_id: Optional[str] = None
    type: str
    slug: str
    is_active: bool
    max_uses: Optional[int] = None
    uses_count: int
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
