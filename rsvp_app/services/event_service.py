"""
Event administration: creation, patches, languages and client access
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rsvp_app.core.config import settings
from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Event, EventLanguage
from rsvp_app.services.code_service import CodeService
from rsvp_app.services.custom_field_service import CustomFieldService
from rsvp_app.services.repositories import EventRepo
from rsvp_app.services.resolver_service import ResolverService

logger = logging.getLogger(__name__)

# Hebrew letters, latin lowercase, digits and whitespace survive
_SLUG_STRIP = re.compile(r"[^\u0590-\u05FFa-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

EDITABLE_FIELDS = (
    "title", "description", "event_date", "location", "theme",
    "accordion_form_enabled", "modern_style_enabled", "site_title",
    "site_description", "rsvp_enabled", "rsvp_open_date", "rsvp_close_date",
)


def slugify_title(title: str) -> str:
    slug = _SLUG_STRIP.sub("", title.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    return slug[:settings.EVENT_SLUG_MAX_LENGTH] or "event"


class EventService:
    """Service for event lifecycle operations"""

    @staticmethod
    def _candidate_slugs(base_slug: str):
        yield base_slug
        counter = 1
        while True:
            yield f"{base_slug}-{counter}"
            counter += 1

    @staticmethod
    def create_event(db: Session, data: Dict[str, Any]) -> Event:
        """Create an event with a unique slug, languages, default fields and a short code"""
        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationError("Event title is required")

        languages: List[str] = list(dict.fromkeys(data.get("languages") or []))
        base_slug = slugify_title(title)

        event = None
        for attempt, slug in enumerate(EventService._candidate_slugs(base_slug)):
            if attempt >= settings.CODE_GENERATION_ATTEMPTS * 10:
                raise ValidationError(f"Could not find a free slug for '{title}'")
            if EventRepo.get_by_slug(db, slug):
                continue
            candidate = Event(
                title=title,
                description=data.get("description"),
                event_date=data.get("event_date"),
                location=data.get("location"),
                theme=data.get("theme"),
                slug=slug,
            )
            db.add(candidate)
            try:
                db.commit()
            except IntegrityError:
                # Slug taken between the check and the insert
                db.rollback()
                logger.warning(f"Slug {slug} taken concurrently, trying next")
                continue
            event = candidate
            break

        db.refresh(event)
        logger.info(f"Created event {event.id} ({event.slug})")

        for index, locale in enumerate(languages):
            db.add(EventLanguage(event_id=event.id, locale=locale, is_default=index == 0))
        CustomFieldService.add_default_fields(db, event.id)
        db.commit()

        CodeService.ensure_event_code(db, event)
        db.refresh(event)
        return event

    @staticmethod
    def list_events(db: Session) -> List[Event]:
        return db.query(Event).order_by(Event.created_at.desc()).all()

    @staticmethod
    def get_event(db: Session, event_id: str) -> Optional[Event]:
        return EventRepo.get_by_id(db, event_id)

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[Event]:
        """Short code or id"""
        event, _ = ResolverService.find_event(db, token)
        return event

    @staticmethod
    def update_event(db: Session, event: Event, updates: Dict[str, Any]) -> Event:
        """Last-write-wins partial patch"""
        open_date = updates.get("rsvp_open_date", event.rsvp_open_date)
        close_date = updates.get("rsvp_close_date", event.rsvp_close_date)
        if open_date and close_date and open_date > close_date:
            raise ValidationError("RSVP open date must be before the close date")
        if "title" in updates and not (updates["title"] or "").strip():
            raise ValidationError("Event title is required")

        for field in EDITABLE_FIELDS:
            if field in updates:
                setattr(event, field, updates[field])
        event.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        """Cascades to guests, links, submissions, fields and languages"""
        event_id = event.id
        db.delete(event)
        db.commit()
        logger.info(f"Deleted event {event_id}")

    # -------- Client dashboard access --------

    @staticmethod
    def set_client_credentials(db: Session, event: Event, username: str, password: str, enabled: bool = True) -> Event:
        clash = db.query(Event).filter(
            Event.client_username == username,
            Event.id != event.id
        ).first()
        if clash:
            raise ValidationError("Username is already used by another event")
        event.client_username = username
        event.client_password = password
        event.client_access_enabled = enabled
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def authenticate_client(db: Session, username: str, password: str) -> Optional[Event]:
        return db.query(Event).filter(
            Event.client_username == username,
            Event.client_password == password,
            Event.client_access_enabled.is_(True)
        ).first()

    # -------- Languages --------

    @staticmethod
    def list_languages(db: Session, event_id: str) -> List[EventLanguage]:
        return db.query(EventLanguage).filter(
            EventLanguage.event_id == event_id
        ).order_by(EventLanguage.is_default.desc(), EventLanguage.locale).all()

    @staticmethod
    def get_language(db: Session, event_id: str, locale: str) -> Optional[EventLanguage]:
        return db.query(EventLanguage).filter(
            EventLanguage.event_id == event_id,
            EventLanguage.locale == locale
        ).first()

    @staticmethod
    def add_language(db: Session, event_id: str, locale: str, is_default: bool = False,
                     translations: Optional[Dict[str, Any]] = None) -> EventLanguage:
        if EventService.get_language(db, event_id, locale):
            raise ValidationError(f"Language '{locale}' already exists for this event")
        if is_default:
            EventService._clear_default(db, event_id)
        language = EventLanguage(
            event_id=event_id,
            locale=locale,
            is_default=is_default,
            translations=translations,
        )
        db.add(language)
        db.commit()
        db.refresh(language)
        return language

    @staticmethod
    def _clear_default(db: Session, event_id: str) -> None:
        db.query(EventLanguage).filter(
            EventLanguage.event_id == event_id
        ).update({EventLanguage.is_default: False}, synchronize_session=False)

    @staticmethod
    def set_default_language(db: Session, language: EventLanguage) -> EventLanguage:
        EventService._clear_default(db, language.event_id)
        language.is_default = True
        db.commit()
        db.refresh(language)
        return language

    @staticmethod
    def set_translations(db: Session, language: EventLanguage, translations: Dict[str, Any]) -> EventLanguage:
        language.translations = dict(translations)
        language.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(language)
        return language

    @staticmethod
    def delete_language(db: Session, language: EventLanguage) -> None:
        db.delete(language)
        db.commit()

    @staticmethod
    def default_locale(db: Session, event_id: str) -> str:
        language = db.query(EventLanguage).filter(
            EventLanguage.event_id == event_id,
            EventLanguage.is_default.is_(True)
        ).first()
        return language.locale if language else settings.DEFAULT_LANGUAGE
