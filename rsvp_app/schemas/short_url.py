"""
Short URL schemas
"""

from datetime import datetime
from pydantic import BaseModel, Field

class ShortURLCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=100)
    target_url: str = Field(..., min_length=1)

class ShortURLResponse(BaseModel):
    id: str
    slug: str
    target_url: str
    clicks_count: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
