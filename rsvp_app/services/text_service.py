"""
Per-event text overrides layered over the built-in UI strings.

Each EventLanguage row may carry a ``translations`` map in one of two shapes:

    flat:        {"rsvp.title": "Welcome"}                  (text for that row's locale)
    structured:  {"rsvp.title": {"text": {"he": "...", "en": "..."}, "hidden": true}}

Lookups go event override -> built-in default for the locale -> caller fallback.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from rsvp_app.models import EventLanguage

logger = logging.getLogger(__name__)

DEFAULT_TEXTS: Dict[str, Dict[str, str]] = {
    "he": {
        "rsvp.title": "אישור הגעה",
        "rsvp.greeting": "שלום {name}",
        "rsvp.submit": "שליחה",
        "rsvp.thankYou": "תודה על אישור ההגעה!",
        "rsvp.alreadyResponded": "כבר אישרת הגעה לאירוע זה",
        "rsvp.menCount": "מספר גברים",
        "rsvp.womenCount": "מספר נשים",
        "error.eventNotFound": "האירוע לא נמצא במערכת",
        "error.invalidLink": "קישור לא תקין",
    },
    "en": {
        "rsvp.title": "RSVP",
        "rsvp.greeting": "Hello {name}",
        "rsvp.submit": "Submit",
        "rsvp.thankYou": "Thank you for confirming!",
        "rsvp.alreadyResponded": "You have already responded to this event",
        "rsvp.menCount": "Number of men",
        "rsvp.womenCount": "Number of women",
        "error.eventNotFound": "Event not found",
        "error.invalidLink": "Invalid link",
    },
    "de": {
        "rsvp.title": "Zusage",
        "rsvp.greeting": "Hallo {name}",
        "rsvp.submit": "Senden",
        "rsvp.thankYou": "Danke für Ihre Zusage!",
        "rsvp.alreadyResponded": "Sie haben bereits geantwortet",
        "rsvp.menCount": "Anzahl Männer",
        "rsvp.womenCount": "Anzahl Frauen",
        "error.eventNotFound": "Veranstaltung nicht gefunden",
        "error.invalidLink": "Ungültiger Link",
    },
}


def _text_from_entry(entry, locale: str) -> Optional[str]:
    """Pull the text for a locale out of either translation shape"""
    if isinstance(entry, str):
        return entry or None
    if isinstance(entry, dict):
        text = entry.get("text")
        if isinstance(text, dict):
            return text.get(locale) or None
    return None


class TextOverrides:
    """Merged key -> locale -> text table for one event"""

    def __init__(self, texts: Optional[Dict[str, Dict[str, str]]] = None,
                 hidden: Optional[Iterable[str]] = None):
        self.texts = texts or {}
        self.hidden = set(hidden or ())

    @classmethod
    def from_languages(cls, languages: Sequence[EventLanguage]) -> "TextOverrides":
        texts: Dict[str, Dict[str, str]] = {}
        hidden = set()
        for language in languages:
            translations = language.translations
            if not isinstance(translations, dict):
                continue
            for key, value in translations.items():
                bucket = texts.setdefault(key, {})
                if isinstance(value, dict):
                    text = value.get("text")
                    if isinstance(text, dict):
                        bucket.update({locale: s for locale, s in text.items() if isinstance(s, str)})
                    if value.get("hidden") is True:
                        hidden.add(key)
                    elif value.get("hidden") is False:
                        hidden.discard(key)
                elif isinstance(value, str):
                    bucket[language.locale] = value
        return cls(texts, hidden)

    @classmethod
    def for_event(cls, db: Session, event_id: str) -> "TextOverrides":
        languages = db.query(EventLanguage).filter(EventLanguage.event_id == event_id).all()
        return cls.from_languages(languages)

    def is_hidden(self, key: str) -> bool:
        return key in self.hidden

    def get_text(self, key: str, locale: str, default: Optional[str] = None) -> str:
        if key not in self.hidden:
            override = self.texts.get(key, {}).get(locale)
            if override:
                return override
        builtin = DEFAULT_TEXTS.get(locale, {}).get(key)
        if builtin:
            return builtin
        return default if default is not None else key

    def as_dict(self, locale: str) -> Dict[str, Optional[str]]:
        """Resolved strings for every known key; hidden keys map to None"""
        keys = set(DEFAULT_TEXTS.get(locale, {})) | set(self.texts)
        return {key: None if self.is_hidden(key) else self.get_text(key, locale) for key in sorted(keys)}


def translate(languages: Sequence[EventLanguage], keys: List[str], locale: str,
              defaults: Dict[str, str]) -> str:
    """First translated text among ``keys`` for ``locale``, else English, else defaults.

    Used by the share pages, which read raw language rows rather than the
    merged table.
    """
    by_locale = {language.locale: language for language in languages}

    for candidate in ([locale, "en"] if locale != "en" else ["en"]):
        language = by_locale.get(candidate)
        if language is None or not isinstance(language.translations, dict):
            continue
        for key in keys:
            text = _text_from_entry(language.translations.get(key), candidate)
            if text:
                return text

    return defaults.get(locale) or defaults.get("en") or defaults.get("he") or ""
