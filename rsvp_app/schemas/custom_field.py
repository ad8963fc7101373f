"""
Custom field and language schemas
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

FieldType = Literal["text", "number", "select", "checkbox", "textarea", "email"]

class CustomFieldInput(BaseModel):
    key: Optional[str] = None
    label: str = Field(..., min_length=1)
    label_translations: Optional[Dict[str, str]] = None
    field_type: FieldType = "text"
    required: bool = False
    options: Optional[List[Any]] = None

class CustomFieldResponse(BaseModel):
    id: str
    event_id: str
    link_type: str
    key: str
    label: str
    label_translations: Optional[Dict[str, str]] = None
    field_type: str
    required: bool
    options: Optional[List[Any]] = None
    order_index: int
    is_active: bool

    class Config:
        from_attributes = True

class LanguageCreate(BaseModel):
    locale: str = Field(..., min_length=2, max_length=10)
    is_default: bool = False
    translations: Optional[Dict[str, Any]] = None

class TranslationsUpdate(BaseModel):
    translations: Dict[str, Any]
