"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .link import *
from .rsvp import *
from .custom_field import *
from .short_url import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventStatistics",
    "ClientCredentials",
    "ClientLoginRequest",
    "GuestCreate",
    "GuestUpdate",
    "GuestResponse",
    "NameLinkCreate",
    "NumberedLinksCreate",
    "LinkUpdate",
    "LinkResponse",
    "RSVPSubmitRequest",
    "SubmissionUpdate",
    "SubmissionResponse",
    "CustomFieldInput",
    "CustomFieldResponse",
    "LanguageCreate",
    "TranslationsUpdate",
    "ShortURLCreate",
    "ShortURLResponse",
]
