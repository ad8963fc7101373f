"""
Tests for event, guest, custom field and language administration
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rsvp_app.core.db import Base
from rsvp_app.core.errors import ValidationError
from rsvp_app.models import CustomFieldConfig, Event, Guest, Link, RSVPSubmission
from rsvp_app.services.custom_field_service import CustomFieldService, DEFAULT_FIELDS
from rsvp_app.services.event_service import EventService, slugify_title
from rsvp_app.services.guest_service import GuestService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.rsvp_service import RSVPService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_admin.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def sample_event(db_session):
    return EventService.create_event(db_session, {"title": "Test Wedding", "languages": ["he", "en"]})

def test_slugify_title():
    assert slugify_title("Test Wedding!") == "test-wedding"
    assert slugify_title("  החתונה של   דנה ") == "החתונה-של-דנה"
    assert slugify_title("!!!") == "event"

def test_create_event_sets_up_defaults(db_session, sample_event):
    assert sample_event.slug == "test-wedding"
    assert sample_event.short_code and sample_event.short_code.isdigit()
    assert sample_event.rsvp_enabled is True

    languages = EventService.list_languages(db_session, sample_event.id)
    assert [(l.locale, l.is_default) for l in languages] == [("he", True), ("en", False)]
    assert EventService.default_locale(db_session, sample_event.id) == "he"

    fields = db_session.query(CustomFieldConfig).filter(CustomFieldConfig.event_id == sample_event.id).count()
    assert fields == len(DEFAULT_FIELDS)

def test_create_event_slug_collision(db_session, sample_event):
    second = EventService.create_event(db_session, {"title": "Test Wedding"})
    third = EventService.create_event(db_session, {"title": "Test  Wedding"})
    assert second.slug == "test-wedding-1"
    assert third.slug == "test-wedding-2"
    assert len({sample_event.short_code, second.short_code, third.short_code}) == 3

def test_create_event_requires_title(db_session):
    with pytest.raises(ValidationError):
        EventService.create_event(db_session, {"title": "  "})

def test_update_event_rejects_inverted_window(db_session, sample_event):
    with pytest.raises(ValidationError):
        EventService.update_event(db_session, sample_event, {
            "rsvp_open_date": datetime(2025, 6, 1),
            "rsvp_close_date": datetime(2025, 5, 1),
        })
    db_session.refresh(sample_event)
    assert sample_event.rsvp_open_date is None

def test_update_event_patches_fields(db_session, sample_event):
    EventService.update_event(db_session, sample_event, {"location": "Jerusalem", "theme": {"primary": "#333"}})
    assert sample_event.location == "Jerusalem"
    assert sample_event.theme == {"primary": "#333"}
    assert sample_event.title == "Test Wedding"

def test_delete_event_cascades(db_session, sample_event):
    guest = GuestService.create_guest(db_session, sample_event.id, {"full_name": "Moshe", "phone": "0501234567"})
    LinkService.create_personal_link(db_session, sample_event, guest)
    RSVPService.submit(db_session, sample_event.id, guest_id=guest.id, men_count=1)

    EventService.delete_event(db_session, sample_event)

    assert db_session.query(Event).count() == 0
    assert db_session.query(Guest).count() == 0
    assert db_session.query(Link).count() == 0
    assert db_session.query(RSVPSubmission).count() == 0
    assert db_session.query(CustomFieldConfig).count() == 0

def test_client_credentials(db_session, sample_event):
    EventService.set_client_credentials(db_session, sample_event, "couple", "secret")
    assert EventService.authenticate_client(db_session, "couple", "secret").id == sample_event.id
    assert EventService.authenticate_client(db_session, "couple", "wrong") is None

    other = EventService.create_event(db_session, {"title": "Other"})
    with pytest.raises(ValidationError):
        EventService.set_client_credentials(db_session, other, "couple", "x")

    EventService.set_client_credentials(db_session, sample_event, "couple", "secret", enabled=False)
    assert EventService.authenticate_client(db_session, "couple", "secret") is None

def test_languages_default_switch(db_session, sample_event):
    english = EventService.get_language(db_session, sample_event.id, "en")
    EventService.set_default_language(db_session, english)
    assert EventService.default_locale(db_session, sample_event.id) == "en"

    with pytest.raises(ValidationError):
        EventService.add_language(db_session, sample_event.id, "en")

def test_guest_phone_validation(db_session, sample_event):
    guest = GuestService.create_guest(db_session, sample_event.id, {
        "first_name": "Moshe", "last_name": "Cohen", "phone": "972-50-123-4567"
    })
    assert guest.phone == "0501234567"
    assert guest.full_name == "Moshe Cohen"

    with pytest.raises(ValidationError):
        GuestService.create_guest(db_session, sample_event.id, {"full_name": "Twin", "phone": "0501234567"})
    with pytest.raises(ValidationError):
        GuestService.create_guest(db_session, sample_event.id, {"full_name": "Bad", "phone": "12345"})
    with pytest.raises(ValidationError):
        GuestService.create_guest(db_session, sample_event.id, {"phone": "0527654321"})

def test_guest_search(db_session, sample_event):
    GuestService.create_guest(db_session, sample_event.id, {"full_name": "Moshe Cohen", "phone": "0501234567"})
    GuestService.create_guest(db_session, sample_event.id, {"full_name": "Sarah Levi", "phone": "0527654321"})

    guests, total = GuestService.list_guests(db_session, sample_event.id, search="levi")
    assert total == 1
    assert guests[0].full_name == "Sarah Levi"

    guests, total = GuestService.list_guests(db_session, sample_event.id, search="0501")
    assert [g.full_name for g in guests] == ["Moshe Cohen"]

def test_replace_fields_keeps_removed_fields_inactive(db_session, sample_event):
    fields = CustomFieldService.replace_fields(db_session, sample_event.id, "open", [
        {"key": "fullName", "label": "Full name", "field_type": "text", "required": True},
        {"key": "meal", "label": "Meal", "field_type": "select", "options": ["meat", "veg"]},
    ])

    assert [f.key for f in fields] == ["fullName", "meal"]
    inactive = CustomFieldService.list_fields(db_session, sample_event.id, "open", active_only=False)
    assert {f.key for f in inactive if not f.is_active} == {"menCounter", "womenCounter"}

    restored = CustomFieldService.activate_field_by_label(db_session, sample_event.id, "👨 מספר גברים")
    assert restored.key == "menCounter"
    assert restored.is_active

def test_replace_fields_rejects_duplicates(db_session, sample_event):
    with pytest.raises(ValidationError):
        CustomFieldService.replace_fields(db_session, sample_event.id, "personal", [
            {"key": "a", "label": "A"},
            {"key": "a", "label": "Again"},
        ])
