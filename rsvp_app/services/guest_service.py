"""
Guest list management
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Guest, Link, RSVPSubmission
from rsvp_app.services.repositories import GuestRepo
from rsvp_app.utils.phone import is_valid_phone, normalize_phone

logger = logging.getLogger(__name__)

GUEST_FIELDS = (
    "first_name", "last_name", "full_name", "phone", "email",
    "group_name", "language", "notes", "men_count", "women_count",
)


class GuestService:
    """Service for guest CRUD"""

    @staticmethod
    def _clean_phone(db: Session, event_id: str, raw_phone: Optional[str],
                     exclude_guest_id: Optional[str] = None) -> Optional[str]:
        if raw_phone is None or not str(raw_phone).strip():
            return None
        if not is_valid_phone(raw_phone):
            raise ValidationError(f"Invalid phone number: {raw_phone}")
        phone = normalize_phone(raw_phone)
        existing = GuestRepo.get_by_phone(db, event_id, phone)
        if existing and existing.id != exclude_guest_id:
            raise ValidationError(f"Phone {phone} already belongs to another guest of this event")
        return phone

    @staticmethod
    def _compose_full_name(data: Dict[str, Any]) -> Optional[str]:
        if data.get("full_name"):
            return data["full_name"].strip()
        name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
        return name or None

    @staticmethod
    def create_guest(db: Session, event_id: str, data: Dict[str, Any]) -> Guest:
        full_name = GuestService._compose_full_name(data)
        if not full_name:
            raise ValidationError("Guest name is required")
        phone = GuestService._clean_phone(db, event_id, data.get("phone"))

        guest = Guest(
            event_id=event_id,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            full_name=full_name,
            phone=phone,
            email=data.get("email"),
            group_name=data.get("group_name"),
            language=data.get("language"),
            notes=data.get("notes"),
            men_count=data.get("men_count") or 0,
            women_count=data.get("women_count") or 0,
        )
        db.add(guest)
        db.commit()
        db.refresh(guest)
        logger.info(f"Added guest {guest.id} to event {event_id}")
        return guest

    @staticmethod
    def bulk_create(db: Session, event_id: str, rows: List[Dict[str, Any]]) -> int:
        """Insert pre-validated rows in one transaction"""
        for row in rows:
            db.add(Guest(
                event_id=event_id,
                first_name=row.get("first_name"),
                last_name=row.get("last_name"),
                full_name=GuestService._compose_full_name(row),
                phone=row.get("phone"),
                men_count=0,
                women_count=0,
            ))
        db.commit()
        return len(rows)

    @staticmethod
    def get_guest(db: Session, event_id: str, guest_id: str) -> Optional[Guest]:
        return GuestRepo.get_by_id(db, event_id, guest_id)

    @staticmethod
    def list_guests(db: Session, event_id: str, search: Optional[str] = None,
                    page: int = 1, per_page: int = 50) -> Tuple[List[Guest], int]:
        query = db.query(Guest).filter(Guest.event_id == event_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Guest.full_name.ilike(pattern), Guest.phone.like(pattern)))
        total = query.count()
        offset = (page - 1) * per_page
        guests = query.order_by(Guest.created_at.desc()).offset(offset).limit(per_page).all()
        return guests, total

    @staticmethod
    def all_guests(db: Session, event_id: str) -> List[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id).order_by(Guest.created_at).all()

    @staticmethod
    def update_guest(db: Session, guest: Guest, updates: Dict[str, Any]) -> Guest:
        if "phone" in updates:
            updates = dict(updates, phone=GuestService._clean_phone(
                db, guest.event_id, updates["phone"], exclude_guest_id=guest.id
            ))
        for field in GUEST_FIELDS:
            if field in updates and (updates[field] is not None or field == "phone"):
                setattr(guest, field, updates[field])
        if ("first_name" in updates or "last_name" in updates) and "full_name" not in updates:
            guest.full_name = GuestService._compose_full_name(
                {"first_name": guest.first_name, "last_name": guest.last_name}
            ) or guest.full_name
        guest.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(guest)
        return guest

    @staticmethod
    def delete_guest(db: Session, guest: Guest) -> None:
        """Submissions and links referencing the guest are kept, detached from it"""
        db.query(RSVPSubmission).filter(RSVPSubmission.guest_id == guest.id).update(
            {RSVPSubmission.guest_id: None}, synchronize_session=False
        )
        db.query(Link).filter(Link.guest_id == guest.id).update(
            {Link.guest_id: None}, synchronize_session=False
        )
        db.delete(guest)
        db.commit()
        logger.info(f"Deleted guest {guest.id}")
