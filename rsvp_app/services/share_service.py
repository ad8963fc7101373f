"""
Bot-facing share pages: Open Graph / Twitter metadata for invitation links.

Link-preview crawlers get a static HTML page with meta tags; people are
redirected straight to the RSVP page.
"""

import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

from sqlalchemy.orm import Session

from rsvp_app.core.config import settings
from rsvp_app.models import Event, EventLanguage
from rsvp_app.services.repositories import EventRepo
from rsvp_app.services.storage_service import StorageService
from rsvp_app.services.text_service import translate

logger = logging.getLogger(__name__)

BOT_PATTERN = re.compile(
    r"WhatsApp|facebookexternalhit|Facebot|Twitterbot|TelegramBot|bot|crawler|spider|LinkedInBot",
    re.IGNORECASE,
)
_RSVP_PATH = re.compile(r"/rsvp/([^/?]+)")

RTL_LANGUAGES = ("he", "ar")

TITLE_PREFIXES = {
    "he": "הזמנה ל",
    "de": "Einladung zu ",
    "en": "Invitation to ",
    "ar": "دعوة إلى ",
    "ru": "Приглашение на ",
    "fr": "Invitation à ",
    "es": "Invitación a ",
}

DEFAULT_EVENT_TITLE = {
    "he": "אירוע",
    "en": "Event",
    "de": "Veranstaltung",
    "ar": "حدث",
    "ru": "Событие",
    "fr": "Événement",
    "es": "Evento",
}

DEFAULT_DESCRIPTION = {
    "he": 'הוזמנת לאירוע "{title}"',
    "en": 'You are invited to "{title}"',
    "de": 'Sie sind zu "{title}" eingeladen',
    "ar": 'أنت مدعو إلى "{title}"',
    "ru": 'Вы приглашены на "{title}"',
    "fr": 'Vous êtes invité à "{title}"',
    "es": 'Estás invitado a "{title}"',
}

OG_LOCALES = {
    "he": "he_IL",
    "en": "en_US",
    "de": "de_DE",
    "ar": "ar_AR",
    "ru": "ru_RU",
    "fr": "fr_FR",
    "es": "es_ES",
}

UUID_MIN_LENGTH = 10


def is_bot(user_agent: Optional[str]) -> bool:
    return bool(user_agent) and BOT_PATTERN.search(user_agent) is not None


def language_from_slug(slug: str) -> str:
    """'<code>-<xx>-<rest>' carries a two-letter language; anything else is the default"""
    parts = slug.split("-")
    if len(parts) >= 2 and len(parts[1]) == 2:
        return parts[1]
    return settings.DEFAULT_LANGUAGE



def event_code_from_target(target_url: str) -> Optional[str]:
    """Event code from '?code=8' (old format) or '/rsvp/8/open' (new format)"""
    parsed = urlparse(target_url)
    code = parse_qs(parsed.query).get("code")
    if code and code[0]:
        return code[0]
    match = _RSVP_PATH.search(parsed.path or target_url)
    return match.group(1) if match else None


class ShareService:
    """Builds share-page metadata for an event"""

    @staticmethod
    def find_event(db: Session, code: Optional[str] = None, event_id: Optional[str] = None) -> Optional[Event]:
        """Short code first; the code is tried as an id only when it is UUID-length"""
        if code:
            event = EventRepo.get_by_short_code(db, code)
            if event is None and len(code) > UUID_MIN_LENGTH:
                event = EventRepo.get_by_id(db, code)
            return event
        if event_id:
            return EventRepo.get_by_id(db, event_id)
        return None

    @staticmethod
    def redirect_url(event: Event, lang: str) -> str:
        return f"{settings.BASE_URL.rstrip('/')}/rsvp/{event.display_code}/open?lang={lang}"

    @staticmethod
    def build_context(db: Session, event: Event, lang: str) -> Dict[str, Any]:
        """Template variables for the meta-tag page"""
        languages = db.query(EventLanguage).filter(EventLanguage.event_id == event.id).all()

        title_defaults = dict(DEFAULT_EVENT_TITLE)
        if event.title:
            title_defaults = {locale: event.title for locale in DEFAULT_EVENT_TITLE}
        title = translate(languages, ["meta.ogTitle", "rsvp.eventTitle", "event.title"], lang, title_defaults)

        description_defaults = {
            locale: template.format(title=title) for locale, template in DEFAULT_DESCRIPTION.items()
        }
        if event.description:
            description_defaults = {locale: event.description for locale in DEFAULT_DESCRIPTION}
        description = translate(
            languages,
            ["meta.ogDescription", "rsvp.eventDescription", "event.description", "rsvp.eventInvitation"],
            lang,
            description_defaults,
        )

        prefix = TITLE_PREFIXES.get(lang, TITLE_PREFIXES["he"])
        return {
            "lang": lang,
            "dir": "rtl" if lang in RTL_LANGUAGES else "ltr",
            "title": f"{prefix}{title}",
            "description": description,
            "image_url": StorageService.invitation_image_url(event.id, lang),
            "redirect_url": ShareService.redirect_url(event, lang),
            "og_locale": OG_LOCALES.get(lang, "he_IL"),
            "site_name": settings.SITE_NAME,
        }
