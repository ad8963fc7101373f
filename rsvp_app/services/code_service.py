"""
Short code generation for events and guests
"""

import logging
import secrets
import string
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rsvp_app.core.config import settings
from rsvp_app.core.errors import CodeGenerationError
from rsvp_app.models import Event, Guest
from rsvp_app.services.repositories import EventRepo, GuestRepo

logger = logging.getLogger(__name__)

GUEST_CODE_ALPHABET = string.ascii_lowercase + string.digits


class CodeService:
    """Generates short codes and assigns them to rows that lack one.

    Assignment is a conditional UPDATE (only while the column is still NULL)
    guarded by the unique constraints on the code columns. A constraint
    violation means another row took the candidate, so a new one is drawn;
    an UPDATE touching no rows means a concurrent caller already assigned a
    code, which is read back and returned.
    """

    @staticmethod
    def _random_event_code() -> str:
        length = max(settings.EVENT_CODE_LENGTH, 1)
        first = secrets.choice("123456789")
        return first + "".join(secrets.choice(string.digits) for _ in range(length - 1))

    @staticmethod
    def _random_guest_code() -> str:
        return "".join(secrets.choice(GUEST_CODE_ALPHABET) for _ in range(settings.GUEST_CODE_LENGTH))

    @staticmethod
    def generate_event_code(db: Session) -> str:
        """Numeric code not currently used by any event"""
        for _ in range(settings.CODE_GENERATION_ATTEMPTS):
            candidate = CodeService._random_event_code()
            if not EventRepo.get_by_short_code(db, candidate):
                return candidate
        raise CodeGenerationError("Could not generate a unique event code")

    @staticmethod
    def generate_guest_code(db: Session, event_id: str) -> str:
        """Alphanumeric code not currently used by a guest of this event"""
        for _ in range(settings.CODE_GENERATION_ATTEMPTS):
            candidate = CodeService._random_guest_code()
            if not GuestRepo.get_by_short_code(db, event_id, candidate):
                return candidate
        raise CodeGenerationError(f"Could not generate a unique guest code for event {event_id}")

    @staticmethod
    def ensure_event_code(db: Session, event: Event) -> Optional[str]:
        """Return the event's code, generating and storing one if missing.

        Commits on success. Returns None when every attempt collided; callers
        then fall back to the event id.
        """
        if event.short_code:
            return event.short_code

        event_id = event.id
        for attempt in range(1, settings.CODE_GENERATION_ATTEMPTS + 1):
            try:
                code = CodeService.generate_event_code(db)
            except CodeGenerationError:
                break
            try:
                result = db.execute(
                    update(Event)
                    .where(Event.id == event_id, Event.short_code.is_(None))
                    .values(short_code=code)
                    .execution_options(synchronize_session=False)
                )
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(f"Event code {code} collided (attempt {attempt}), retrying")
                continue

            db.refresh(event)
            if result.rowcount == 0:
                logger.info(f"Event {event_id} received a code concurrently: {event.short_code}")
            else:
                logger.info(f"Assigned short code {code} to event {event_id}")
            return event.short_code

        logger.error(f"Giving up on short code for event {event_id}")
        return None

    @staticmethod
    def ensure_guest_code(db: Session, guest: Guest) -> Optional[str]:
        """Guest counterpart of ensure_event_code, unique per event"""
        if guest.short_code:
            return guest.short_code

        guest_id, event_id = guest.id, guest.event_id
        for attempt in range(1, settings.CODE_GENERATION_ATTEMPTS + 1):
            try:
                code = CodeService.generate_guest_code(db, event_id)
            except CodeGenerationError:
                break
            try:
                result = db.execute(
                    update(Guest)
                    .where(Guest.id == guest_id, Guest.short_code.is_(None))
                    .values(short_code=code)
                    .execution_options(synchronize_session=False)
                )
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(f"Guest code {code} collided in event {event_id} (attempt {attempt}), retrying")
                continue

            db.refresh(guest)
            if result.rowcount == 0:
                logger.info(f"Guest {guest_id} received a code concurrently: {guest.short_code}")
            return guest.short_code

        logger.error(f"Giving up on short code for guest {guest_id}")
        return None

    @staticmethod
    def backfill_missing_codes(db: Session) -> Tuple[int, int]:
        """Generate codes for every event and guest that has none"""
        events_updated = 0
        for event in EventRepo.list_without_code(db):
            if CodeService.ensure_event_code(db, event):
                events_updated += 1

        guests_updated = 0
        for guest in GuestRepo.list_without_code(db):
            if CodeService.ensure_guest_code(db, guest):
                guests_updated += 1

        logger.info(f"Backfilled short codes: {events_updated} events, {guests_updated} guests")
        return events_updated, guests_updated
