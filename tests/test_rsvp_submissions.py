"""
Tests for RSVP recording, aggregation and the RSVP window
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rsvp_app.core.db import Base
from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Event, Guest, RSVPSubmission
from rsvp_app.services.code_service import CodeService
from rsvp_app.services.event_service import EventService
from rsvp_app.services.guest_service import GuestService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.resolver_service import ResolverService
from rsvp_app.services.rsvp_service import (
    RSVPService, STATUS_OPEN, STATUS_DISABLED, STATUS_NOT_YET_OPEN, STATUS_CLOSED
)

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_rsvp.db"
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
def event_with_guest(db_session):
    event = Event(title="Test Wedding", slug="test-wedding", short_code="42")
    db_session.add(event)
    db_session.flush()
    guest = Guest(event_id=event.id, full_name="Moshe Cohen", phone="0501234567", men_count=2, women_count=2)
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(event)
    db_session.refresh(guest)
    return event, guest

def test_end_to_end_invitation_flow(db_session):
    """Create event and guest, issue a personal link, resolve it and respond"""
    event = EventService.create_event(db_session, {"title": "Test Wedding", "languages": ["he", "en"]})
    assert CodeService.ensure_event_code(db_session, event)

    guest = GuestService.create_guest(db_session, event.id, {"full_name": "Moshe Cohen", "phone": "0501234567"})
    assert CodeService.ensure_guest_code(db_session, guest)

    link = LinkService.create_personal_link(db_session, event, guest)
    event_token = LinkService.event_token(db_session, event)

    resolution = ResolverService.resolve(db_session, event_token, link.slug)
    assert (resolution.event_id, resolution.guest_id) == (event.id, guest.id)

    RSVPService.submit(
        db_session,
        event_id=resolution.event_id,
        guest_id=resolution.guest_id,
        link_id=resolution.link_id,
        men_count=2,
        women_count=1,
    )

    rows = db_session.query(RSVPSubmission).all()
    assert len(rows) == 1
    assert rows[0].event_id == event.id
    assert rows[0].guest_id == guest.id
    assert (rows[0].men_count, rows[0].women_count) == (2, 1)

def test_submit_returns_id_and_leaves_guest_untouched(db_session, event_with_guest):
    event, guest = event_with_guest

    submission_id = RSVPService.submit(
        db_session, event.id, guest_id=guest.id, men_count=1, women_count=0,
        answers={"menCounter": 1, "unknownKey": "kept"}
    )

    submission = RSVPService.get_submission(db_session, event.id, submission_id)
    assert submission.answers == {"menCounter": 1, "unknownKey": "kept"}
    db_session.refresh(guest)
    assert (guest.men_count, guest.women_count) == (2, 2)

def test_submit_composes_full_name(db_session, event_with_guest):
    event, _ = event_with_guest
    submission_id = RSVPService.submit(db_session, event.id, first_name="Dana", last_name="Levi")
    assert RSVPService.get_submission(db_session, event.id, submission_id).full_name == "Dana Levi"

@pytest.mark.parametrize("men_count", [-1, 1.5, "2", True])
def test_submit_rejects_bad_counts(db_session, event_with_guest, men_count):
    event, _ = event_with_guest
    with pytest.raises(ValidationError):
        RSVPService.submit(db_session, event.id, men_count=men_count)
    assert db_session.query(RSVPSubmission).count() == 0

def test_submit_rejects_non_mapping_answers(db_session, event_with_guest):
    event, _ = event_with_guest
    with pytest.raises(ValidationError):
        RSVPService.submit(db_session, event.id, answers=["yes"])

def test_resubmission_accumulates(db_session, event_with_guest):
    event, guest = event_with_guest
    RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=2, women_count=1)
    RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=1, women_count=0)

    totals = RSVPService.aggregate_guest_totals(db_session, event.id)

    assert totals[guest.id] == (3, 1)
    assert sum(totals[guest.id]) == 4
    assert db_session.query(RSVPSubmission).count() == 2

def test_event_statistics(db_session, event_with_guest):
    event, guest = event_with_guest
    other = Guest(event_id=event.id, full_name="Sarah Levi", phone="0527654321")
    db_session.add(other)
    db_session.commit()

    RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=2, women_count=1)
    RSVPService.submit(db_session, event.id, full_name="Walk In", men_count=0, women_count=3)

    stats = RSVPService.event_statistics(db_session, event.id)

    assert stats["total_guests"] == 2
    assert stats["responded_guests"] == 1
    assert stats["pending_guests"] == 1
    assert stats["total_submissions"] == 2
    assert stats["confirmed_men"] == 2
    assert stats["confirmed_women"] == 4
    assert stats["confirmed_total"] == 6

def test_deleted_guest_leaves_statistics_consistent(db_session, event_with_guest):
    event, guest = event_with_guest
    link = LinkService.create_personal_link(db_session, event, guest)
    submission_id = RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=2, women_count=1)

    GuestService.delete_guest(db_session, guest)

    stats = RSVPService.event_statistics(db_session, event.id)
    assert stats["total_guests"] == 0
    assert stats["responded_guests"] == 0
    assert stats["confirmed_total"] == 3
    assert RSVPService.aggregate_guest_totals(db_session, event.id) == {}

    submission = db_session.get(RSVPSubmission, submission_id)
    db_session.refresh(submission)
    db_session.refresh(link)
    assert submission.guest_id is None
    assert link.guest_id is None

def test_has_responded(db_session, event_with_guest):
    event, guest = event_with_guest
    assert not RSVPService.has_responded(db_session, event.id, guest.id)
    RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=1)
    assert RSVPService.has_responded(db_session, event.id, guest.id)

def test_update_submission(db_session, event_with_guest):
    event, guest = event_with_guest
    submission_id = RSVPService.submit(db_session, event.id, guest_id=guest.id, men_count=1)
    submission = RSVPService.get_submission(db_session, event.id, submission_id)

    RSVPService.update_submission(db_session, submission, {"women_count": 3, "answers": {"note": "late"}})

    assert submission.men_count == 1
    assert submission.women_count == 3
    assert submission.answers == {"note": "late"}

def test_rsvp_status_window():
    now = datetime(2025, 5, 1, 12, 0)
    event = Event(title="Window", slug="window", rsvp_enabled=True)

    assert RSVPService.rsvp_status(event, now).reason == STATUS_OPEN

    event.rsvp_open_date = now + timedelta(days=1)
    status = RSVPService.rsvp_status(event, now)
    assert not status.open
    assert status.reason == STATUS_NOT_YET_OPEN
    assert "02/05/2025" in RSVPService.status_message(status, "en")

    event.rsvp_open_date = None
    event.rsvp_close_date = now - timedelta(hours=1)
    assert RSVPService.rsvp_status(event, now).reason == STATUS_CLOSED

    event.rsvp_enabled = False
    status = RSVPService.rsvp_status(event, now)
    assert status.reason == STATUS_DISABLED
    assert RSVPService.status_message(status, "de").startswith("Die Anmeldung")
