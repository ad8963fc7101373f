"""
Repository layer: the lookups the resolver and builders share.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from rsvp_app.models import Event, Guest, Link
from rsvp_app.models.link import LINK_TYPE_OPEN, LINK_TYPE_PERSONAL, OPEN_LINK_SLUG


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_by_short_code(db: Session, short_code: str) -> Optional[Event]:
        return db.query(Event).filter(Event.short_code == short_code).first()

    @staticmethod
    def get_by_id(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Event]:
        return db.query(Event).filter(Event.slug == slug).first()

    @staticmethod
    def list_without_code(db: Session) -> List[Event]:
        return db.query(Event).filter(Event.short_code.is_(None)).all()


# -------- Guest repository --------

class GuestRepo:
    @staticmethod
    def get_by_id(db: Session, event_id: str, guest_id: str) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id, Guest.id == guest_id).first()

    @staticmethod
    def get_by_short_code(db: Session, event_id: str, short_code: str) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id, Guest.short_code == short_code).first()

    @staticmethod
    def get_by_phone(db: Session, event_id: str, phone: str) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id, Guest.phone == phone).first()

    @staticmethod
    def list_without_code(db: Session) -> List[Guest]:
        return db.query(Guest).filter(Guest.short_code.is_(None)).all()


# -------- Link repository --------

class LinkRepo:
    @staticmethod
    def get_by_id(db: Session, link_id: str) -> Optional[Link]:
        return db.query(Link).filter(Link.id == link_id).first()

    @staticmethod
    def get_open_link(db: Session, event_id: str) -> Optional[Link]:
        return db.query(Link).filter(
            Link.event_id == event_id,
            Link.type == LINK_TYPE_OPEN,
            Link.slug == OPEN_LINK_SLUG
        ).first()

    @staticmethod
    def find_personal_by_slug(db: Session, event_id: str, slug: str) -> Optional[Link]:
        # Oldest first so duplicate name links resolve deterministically
        return db.query(Link).filter(
            Link.event_id == event_id,
            Link.type == LINK_TYPE_PERSONAL,
            Link.slug == slug
        ).order_by(Link.created_at, Link.id).first()

    @staticmethod
    def find_for_guest(db: Session, event_id: str, guest: Guest) -> Optional[Link]:
        link = db.query(Link).filter(
            Link.event_id == event_id,
            Link.guest_id == guest.id
        ).order_by(Link.created_at, Link.id).first()
        if link:
            return link
        for slug in (guest.short_code, guest.phone):
            if slug:
                link = LinkRepo.find_personal_by_slug(db, event_id, slug)
                if link:
                    return link
        return None

    @staticmethod
    def list_for_event(db: Session, event_id: str) -> List[Link]:
        return db.query(Link).filter(Link.event_id == event_id).order_by(Link.created_at.desc()).all()
