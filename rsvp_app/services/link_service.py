"""
Invitation link issuing and bookkeeping
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rsvp_app.core.config import settings
from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Event, Guest, Link
from rsvp_app.models.link import LINK_TYPE_OPEN, LINK_TYPE_PERSONAL, OPEN_LINK_SLUG
from rsvp_app.services.code_service import CodeService
from rsvp_app.services.repositories import LinkRepo

logger = logging.getLogger(__name__)

NAME_SLUG_PREFIX = "name/"
MAX_NUMBERED_LINKS = 100
# Same reserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_name(display_name: str) -> str:
    return quote(display_name, safe=_URI_COMPONENT_SAFE)


def name_slug(display_name: str) -> str:
    return NAME_SLUG_PREFIX + encode_name(display_name.strip())


class LinkService:
    """Builds and persists shareable invitation links"""

    @staticmethod
    def event_token(db: Session, event: Event) -> str:
        """Event segment for public URLs: the short code, generated on demand"""
        code = CodeService.ensure_event_code(db, event)
        return code or event.id

    @staticmethod
    def build_public_url(event_token: str, slug: str) -> str:
        return f"{settings.BASE_URL.rstrip('/')}/rsvp/{event_token}/{slug}"

    @staticmethod
    def url_for(db: Session, event: Event, link: Link) -> str:
        return LinkService.build_public_url(LinkService.event_token(db, event), link.slug)

    @staticmethod
    def _insert(db: Session, event: Event, link_type: str, slug: str, guest_id: Optional[str] = None) -> Link:
        link = Link(event_id=event.id, type=link_type, slug=slug, guest_id=guest_id)
        db.add(link)
        db.commit()
        db.refresh(link)
        return link

    @staticmethod
    def create_name_link(db: Session, event: Event, display_name: str) -> Link:
        """Personal link carrying the guest's name in the URL.

        Repeated calls with the same name create separate rows.
        """
        if not display_name or not display_name.strip():
            raise ValidationError("Name is required for a name link")
        link = LinkService._insert(db, event, LINK_TYPE_PERSONAL, name_slug(display_name))
        logger.info(f"Created name link {link.slug} for event {event.id}")
        return link

    @staticmethod
    def create_open_link(db: Session, event: Event) -> Link:
        """Return the event's open link, creating it on first use"""
        existing = LinkRepo.get_open_link(db, event.id)
        if existing:
            return existing

        event_id = event.id
        try:
            link = LinkService._insert(db, event, LINK_TYPE_OPEN, OPEN_LINK_SLUG)
        except IntegrityError:
            # Lost the race against a concurrent creator
            db.rollback()
            link = LinkRepo.get_open_link(db, event_id)
            if link is None:
                raise
            logger.info(f"Reusing concurrently created open link for event {event_id}")
            return link

        logger.info(f"Created open link for event {event_id}")
        return link

    @staticmethod
    def create_personal_link(db: Session, event: Event, guest: Guest) -> Link:
        """Link addressing one guest by short code, or by phone when no code exists"""
        slug = CodeService.ensure_guest_code(db, guest) or guest.phone
        if not slug:
            raise ValidationError("Guest has neither a short code nor a phone number")
        link = LinkService._insert(db, event, LINK_TYPE_PERSONAL, slug, guest_id=guest.id)
        logger.info(f"Created personal link {slug} for guest {guest.id}")
        return link

    @staticmethod
    def create_numbered_links(db: Session, event: Event, count: int) -> List[Link]:
        """Batch of sequential links 01, 02, ... (not checked against existing numbers)"""
        if count < 1 or count > MAX_NUMBERED_LINKS:
            raise ValidationError(f"Count must be between 1 and {MAX_NUMBERED_LINKS}")

        links = [
            Link(event_id=event.id, type=LINK_TYPE_PERSONAL, slug=str(i).zfill(2))
            for i in range(1, count + 1)
        ]
        db.add_all(links)
        db.commit()
        for link in links:
            db.refresh(link)
        logger.info(f"Created {count} numbered links for event {event.id}")
        return links

    @staticmethod
    def list_links(db: Session, event_id: str) -> List[Link]:
        return LinkRepo.list_for_event(db, event_id)

    @staticmethod
    def update_link(db: Session, link: Link, updates: Dict[str, Any]) -> Link:
        for field in ("is_active", "max_uses", "expires_at", "settings"):
            if field in updates:
                setattr(link, field, updates[field])
        link.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(link)
        return link

    @staticmethod
    def delete_link(db: Session, link: Link) -> None:
        db.delete(link)
        db.commit()

    @staticmethod
    def is_link_usable(link: Link, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        if not link.is_active:
            return False
        if link.expires_at and link.expires_at < now:
            return False
        if link.max_uses is not None and link.uses_count >= link.max_uses:
            return False
        return True

    @staticmethod
    def record_link_use(db: Session, link: Link) -> None:
        db.execute(
            update(Link)
            .where(Link.id == link.id)
            .values(uses_count=Link.uses_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
