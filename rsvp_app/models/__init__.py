"""
Database models package
"""

from .event import Event
from .guest import Guest
from .link import Link
from .custom_field import CustomFieldConfig
from .rsvp_submission import RSVPSubmission
from .event_language import EventLanguage
from .short_url import ShortURL

__all__ = [
    "Event",
    "Guest",
    "Link",
    "CustomFieldConfig",
    "RSVPSubmission",
    "EventLanguage",
    "ShortURL",
]
