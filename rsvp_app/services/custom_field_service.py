"""
Custom form fields per event and link type
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from rsvp_app.core.errors import ValidationError
from rsvp_app.models import CustomFieldConfig
from rsvp_app.models.custom_field import FIELD_TYPES
from rsvp_app.models.link import LINK_TYPE_OPEN, LINK_TYPE_PERSONAL

logger = logging.getLogger(__name__)

LINK_TYPES = (LINK_TYPE_OPEN, LINK_TYPE_PERSONAL)

# Seeded on every new event
DEFAULT_FIELDS = [
    {"link_type": LINK_TYPE_PERSONAL, "key": "menCounter", "label": "👨 מספר גברים",
     "label_translations": {"en": "Number of men"}, "field_type": "number", "required": False},
    {"link_type": LINK_TYPE_PERSONAL, "key": "womenCounter", "label": "👩 מספר נשים",
     "label_translations": {"en": "Number of women"}, "field_type": "number", "required": False},
    {"link_type": LINK_TYPE_OPEN, "key": "fullName", "label": "שם מלא",
     "label_translations": {"en": "Full name"}, "field_type": "text", "required": True},
    {"link_type": LINK_TYPE_OPEN, "key": "menCounter", "label": "👨 מספר גברים",
     "label_translations": {"en": "Number of men"}, "field_type": "number", "required": False},
    {"link_type": LINK_TYPE_OPEN, "key": "womenCounter", "label": "👩 מספר נשים",
     "label_translations": {"en": "Number of women"}, "field_type": "number", "required": False},
]


class CustomFieldService:
    """Service for custom field configuration"""

    @staticmethod
    def add_default_fields(db: Session, event_id: str) -> None:
        """Stage the default field set; the caller commits"""
        order = {LINK_TYPE_OPEN: 0, LINK_TYPE_PERSONAL: 0}
        for field in DEFAULT_FIELDS:
            db.add(CustomFieldConfig(event_id=event_id, order_index=order[field["link_type"]], **field))
            order[field["link_type"]] += 1

    @staticmethod
    def list_fields(db: Session, event_id: str, link_type: Optional[str] = None,
                    active_only: bool = True) -> List[CustomFieldConfig]:
        query = db.query(CustomFieldConfig).filter(CustomFieldConfig.event_id == event_id)
        if active_only:
            query = query.filter(CustomFieldConfig.is_active.is_(True))
        if link_type:
            query = query.filter(CustomFieldConfig.link_type == link_type)
        return query.order_by(CustomFieldConfig.link_type, CustomFieldConfig.order_index).all()

    @staticmethod
    def replace_fields(db: Session, event_id: str, link_type: str,
                       fields: List[Dict[str, Any]]) -> List[CustomFieldConfig]:
        """Deactivate the current set, then upsert the given fields in order by key"""
        if link_type not in LINK_TYPES:
            raise ValidationError(f"Unknown link type '{link_type}'")

        keys = [field.get("key") or f"field_{index}" for index, field in enumerate(fields)]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValidationError("Duplicate field keys", [f"Duplicate key '{key}'" for key in duplicates])
        for field in fields:
            if field.get("field_type", "text") not in FIELD_TYPES:
                raise ValidationError(f"Unknown field type '{field.get('field_type')}'")

        existing = {
            row.key: row
            for row in db.query(CustomFieldConfig).filter(
                CustomFieldConfig.event_id == event_id,
                CustomFieldConfig.link_type == link_type
            ).all()
        }
        for row in existing.values():
            row.is_active = False

        now = datetime.utcnow()
        for index, (key, field) in enumerate(zip(keys, fields)):
            row = existing.get(key)
            if row is None:
                row = CustomFieldConfig(event_id=event_id, link_type=link_type, key=key)
                db.add(row)
            row.label = field.get("label") or "שדה"
            row.label_translations = field.get("label_translations")
            row.field_type = field.get("field_type") or "text"
            row.required = bool(field.get("required", False))
            row.options = field.get("options")
            row.order_index = index
            row.is_active = True
            row.updated_at = now

        db.commit()
        logger.info(f"Replaced {len(fields)} {link_type} fields for event {event_id}")
        return CustomFieldService.list_fields(db, event_id, link_type)

    @staticmethod
    def activate_field(db: Session, field_id: str) -> Optional[CustomFieldConfig]:
        field = db.query(CustomFieldConfig).filter(CustomFieldConfig.id == field_id).first()
        if not field:
            return None
        field.is_active = True
        field.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(field)
        return field

    @staticmethod
    def activate_field_by_label(db: Session, event_id: str, label: str) -> Optional[CustomFieldConfig]:
        """Re-enable the first inactive field carrying this label"""
        field = db.query(CustomFieldConfig).filter(
            CustomFieldConfig.event_id == event_id,
            CustomFieldConfig.label == label,
            CustomFieldConfig.is_active.is_(False)
        ).first()
        if not field:
            logger.info(f"No inactive field labelled {label!r} in event {event_id}")
            return None
        return CustomFieldService.activate_field(db, field.id)
