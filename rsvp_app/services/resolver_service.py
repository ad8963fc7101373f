"""
Turns the tokens of an invitation URL back into database rows.

URL shapes handled:
    /rsvp/<event>/<guest>        guest short code or phone
    /rsvp/<event>/name/<name>    display name carried in the URL, no guest row
    /rsvp/<event>/open           open self-registration

The event token is tried as a short code first, then as a literal event id.
Short codes are backfilled lazily, so rows created before a code existed must
stay reachable by their original identifiers.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from rsvp_app.models import Event, Guest, Link
from rsvp_app.models.link import LINK_TYPE_OPEN, LINK_TYPE_PERSONAL, OPEN_LINK_SLUG
from rsvp_app.services.link_service import NAME_SLUG_PREFIX, name_slug
from rsvp_app.services.repositories import EventRepo, GuestRepo, LinkRepo
from rsvp_app.utils.phone import digits_only, normalize_phone

logger = logging.getLogger(__name__)

TIER_SHORT_CODE = "short_code"
TIER_IDENTIFIER = "identifier"

EVENT_NOT_FOUND = "event_not_found"
INVALID_LINK = "invalid_link"

SHORT_CODE_MAX_LENGTH = 10


def looks_like_short_code(token: str) -> bool:
    """Purely numeric and shorter than 10 characters"""
    return token.isdigit() and len(token) < SHORT_CODE_MAX_LENGTH


@dataclass
class Resolution:
    """Outcome of resolving an invitation URL"""
    event: Optional[Event] = None
    guest: Optional[Guest] = None
    link: Optional[Link] = None
    link_type: str = LINK_TYPE_PERSONAL
    display_name: Optional[str] = None
    tier: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def event_id(self) -> Optional[str]:
        return self.event.id if self.event else None

    @property
    def guest_id(self) -> Optional[str]:
        return self.guest.id if self.guest else None

    @property
    def link_id(self) -> Optional[str]:
        return self.link.id if self.link else None


class ResolverService:
    """Read-only lookups from URL tokens to event/guest/link rows"""

    @staticmethod
    def find_event(db: Session, event_token: str) -> Tuple[Optional[Event], Optional[str]]:
        token = (event_token or "").strip()
        if not token:
            return None, None

        event = EventRepo.get_by_short_code(db, token)
        if event:
            return event, TIER_SHORT_CODE

        event = EventRepo.get_by_id(db, token)
        if event:
            return event, TIER_IDENTIFIER
        return None, None

    @staticmethod
    def _guest_by_code(db: Session, event_id: str, token: str) -> Optional[Guest]:
        return GuestRepo.get_by_short_code(db, event_id, token)

    @staticmethod
    def _guest_by_phone(db: Session, event_id: str, token: str) -> Optional[Guest]:
        if not digits_only(token):
            return None
        guest = GuestRepo.get_by_phone(db, event_id, normalize_phone(token))
        if guest is None and token != normalize_phone(token):
            # Rows stored before normalization keep their raw phone
            guest = GuestRepo.get_by_phone(db, event_id, token)
        return guest

    @staticmethod
    def find_guest(db: Session, event_id: str, guest_token: str, tier: str) -> Optional[Guest]:
        """Short-code tier tries guest codes first; identifier tier tries phones first"""
        if tier == TIER_SHORT_CODE:
            lookups = (ResolverService._guest_by_code, ResolverService._guest_by_phone)
        else:
            lookups = (ResolverService._guest_by_phone, ResolverService._guest_by_code)
        for lookup in lookups:
            guest = lookup(db, event_id, guest_token)
            if guest:
                return guest
        return None

    @staticmethod
    def resolve(db: Session, event_token: str, guest_token: Optional[str]) -> Resolution:
        """Resolve an (event, guest) token pair"""
        event, tier = ResolverService.find_event(db, event_token)
        if not event:
            logger.info(f"Event token {event_token!r} did not resolve")
            return Resolution(error=EVENT_NOT_FOUND)

        token = (guest_token or "").strip()
        if not token:
            return Resolution(event=event, tier=tier, error=INVALID_LINK)

        guest = ResolverService.find_guest(db, event.id, token, tier)
        if guest:
            link = LinkRepo.find_for_guest(db, event.id, guest)
            return Resolution(
                event=event,
                guest=guest,
                link=link,
                link_type=LINK_TYPE_PERSONAL,
                display_name=guest.display_name,
                tier=tier,
            )

        # Numbered and other bare personal links exist only as link rows
        link = LinkRepo.find_personal_by_slug(db, event.id, token)
        if link:
            return Resolution(event=event, link=link, link_type=LINK_TYPE_PERSONAL, tier=tier)

        logger.info(f"Guest token {token!r} did not resolve in event {event.id}")
        return Resolution(event=event, tier=tier, error=INVALID_LINK)

    @staticmethod
    def resolve_name(db: Session, event_token: str, name: str) -> Resolution:
        """Name links need no guest row.

        `name` arrives already percent-decoded by the router.
        """
        event, tier = ResolverService.find_event(db, event_token)
        if not event:
            return Resolution(error=EVENT_NOT_FOUND)

        display_name = (name or "").strip()
        if not display_name:
            return Resolution(event=event, tier=tier, error=INVALID_LINK)

        link = LinkRepo.find_personal_by_slug(db, event.id, name_slug(display_name))
        return Resolution(
            event=event,
            link=link,
            link_type=LINK_TYPE_PERSONAL,
            display_name=display_name,
            tier=tier,
        )

    @staticmethod
    def resolve_open(db: Session, event_token: str) -> Resolution:
        event, tier = ResolverService.find_event(db, event_token)
        if not event:
            return Resolution(error=EVENT_NOT_FOUND)
        link = LinkRepo.get_open_link(db, event.id)
        return Resolution(event=event, link=link, link_type=LINK_TYPE_OPEN, tier=tier)

    @staticmethod
    def resolve_path(db: Session, event_token: str, path: str) -> Resolution:
        """Dispatch on the decoded remainder of /rsvp/<event>/<path>"""
        path = (path or "").strip("/")
        if path == OPEN_LINK_SLUG:
            return ResolverService.resolve_open(db, event_token)
        if path.startswith(NAME_SLUG_PREFIX):
            return ResolverService.resolve_name(db, event_token, path[len(NAME_SLUG_PREFIX):])
        return ResolverService.resolve(db, event_token, path)
