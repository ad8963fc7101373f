"""
API tests through the FastAPI test client
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from rsvp_app.core.config import settings
from rsvp_app.core.db import Base, get_db
from rsvp_app.models import RSVPSubmission
from rsvp_app.utils import security

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_HEADERS = {"Authorization": f"Bearer {settings.ADMIN_TOKEN}"}
BOT_HEADERS = {"User-Agent": "WhatsApp/2.23.20.0 A"}

@pytest.fixture
def client():
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    security.rate_limiter.clear()
    security.client_sessions.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def event(client):
    response = client.post("/admin/events", json={"title": "Test Wedding", "languages": ["he", "en"]},
                           headers=ADMIN_HEADERS)
    assert response.status_code == 201
    return response.json()["data"]

@pytest.fixture
def guest(client, event):
    response = client.post(
        f"/admin/events/{event['id']}/guests",
        json={"full_name": "Moshe Cohen", "phone": "050-123-4567"},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 201
    return response.json()["data"]

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

def test_admin_requires_token(client):
    assert client.get("/admin/events", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/admin/events").status_code in (401, 403)

def test_guest_gets_code_and_normalized_phone(guest):
    assert guest["phone"] == "0501234567"
    assert guest["short_code"]

def test_duplicate_guest_phone_rejected(client, event, guest):
    response = client.post(
        f"/admin/events/{event['id']}/guests",
        json={"full_name": "Twin", "phone": "0501234567"},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 422
    assert response.json()["success"] is False

def test_personal_invitation_flow(client, event, guest):
    link = client.post(
        f"/admin/events/{event['id']}/guests/{guest['id']}/link", headers=ADMIN_HEADERS
    ).json()["data"]
    assert link["url"].endswith(f"/rsvp/{event['short_code']}/{guest['short_code']}")

    response = client.get(f"/rsvp/{event['short_code']}/{guest['short_code']}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["guest"]["id"] == guest["id"]
    assert data["link_id"] == link["id"]
    assert data["language"] == "he"
    assert data["rsvp"]["open"] is True
    assert data["already_responded"] is False
    assert {f["key"] for f in data["fields"]} == {"menCounter", "womenCounter"}

    response = client.post("/rsvp/submit", json={
        "event_id": event["id"],
        "guest_id": guest["id"],
        "link_id": link["id"],
        "men_count": 2,
        "women_count": 1,
    })
    assert response.status_code == 201

    data = client.get(f"/rsvp/{event['id']}/0501234567").json()["data"]
    assert data["already_responded"] is True

    stats = client.get(f"/admin/events/{event['id']}/statistics", headers=ADMIN_HEADERS).json()["data"]
    assert stats["responded_guests"] == 1
    assert stats["confirmed_total"] == 3

def test_resolve_errors(client, event):
    response = client.get("/rsvp/0000/0501234567")
    assert response.status_code == 404
    assert response.json()["error_code"] == "event_not_found"

    response = client.get(f"/rsvp/{event['short_code']}/0509999999")
    assert response.status_code == 404
    assert response.json()["error_code"] == "invalid_link"

def test_open_link_and_name_link(client, event):
    first = client.post(f"/admin/events/{event['id']}/links/open", headers=ADMIN_HEADERS).json()["data"]
    second = client.post(f"/admin/events/{event['id']}/links/open", headers=ADMIN_HEADERS).json()["data"]
    assert first["id"] == second["id"]

    data = client.get(f"/rsvp/{event['short_code']}/open?lang=en").json()["data"]
    assert data["link_type"] == "open"
    assert data["language"] == "en"
    assert "fullName" in {f["key"] for f in data["fields"]}

    client.post(f"/admin/events/{event['id']}/links/name", json={"name": "John Doe"}, headers=ADMIN_HEADERS)
    data = client.get(f"/rsvp/{event['short_code']}/name/John%20Doe").json()["data"]
    assert data["display_name"] == "John Doe"

    link = client.post(f"/admin/events/{event['id']}/links/name", json={"name": "Promo 100%41"},
                       headers=ADMIN_HEADERS).json()["data"]
    data = client.get(f"/rsvp/{event['short_code']}/{link['slug']}").json()["data"]
    assert data["display_name"] == "Promo 100%41"
    assert data["link_id"] == link["id"]

def test_submit_rejected_when_rsvp_closed(client, event):
    client.patch(f"/admin/events/{event['id']}", json={"rsvp_enabled": False}, headers=ADMIN_HEADERS)

    response = client.post("/rsvp/submit", json={"event_id": event["id"], "full_name": "Late", "men_count": 1})

    assert response.status_code == 403
    assert response.json()["error_code"] == "rsvp_disabled"
    db = TestingSessionLocal()
    try:
        assert db.query(RSVPSubmission).count() == 0
    finally:
        db.close()

def test_submit_rejects_negative_counts(client, event):
    response = client.post("/rsvp/submit", json={"event_id": event["id"], "men_count": -1})
    assert response.status_code == 422

def test_exhausted_link_rejects_submission(client, event):
    link = client.post(f"/admin/events/{event['id']}/links/name", json={"name": "Dana"},
                       headers=ADMIN_HEADERS).json()["data"]
    client.patch(f"/admin/links/{link['id']}", json={"max_uses": 1}, headers=ADMIN_HEADERS)

    payload = {"event_id": event["id"], "link_id": link["id"], "full_name": "Dana", "women_count": 1}
    assert client.post("/rsvp/submit", json=payload).status_code == 201
    response = client.post("/rsvp/submit", json=payload)
    assert response.status_code == 403
    assert response.json()["error_code"] == "link_inactive"

def test_client_dashboard(client, event):
    client.put(f"/admin/events/{event['id']}/client-access",
               json={"username": "couple", "password": "secret"}, headers=ADMIN_HEADERS)

    assert client.post("/client/login", json={"username": "couple", "password": "nope"}).status_code == 401

    token = client.post("/client/login", json={"username": "couple", "password": "secret"}).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    dashboard = client.get("/client/dashboard", headers=headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["data"]["event"]["id"] == event["id"]

    client.post("/client/logout", headers=headers)
    assert client.get("/client/dashboard", headers=headers).status_code == 401

def test_share_event_bot_and_human(client, event):
    response = client.get(f"/share/event?code={event['short_code']}&lang=en", headers=BOT_HEADERS)
    assert response.status_code == 200
    assert 'property="og:title"' in response.text
    assert "Invitation to Test Wedding" in response.text

    response = client.get(f"/share/event?code={event['short_code']}&lang=en", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"].endswith(f"/rsvp/{event['short_code']}/open?lang=en")

def test_short_url_redirect(client, event):
    target = f"{settings.BASE_URL}/rsvp/{event['short_code']}/open"
    client.post("/admin/short-urls", json={"slug": "tw-en-invite", "target_url": target}, headers=ADMIN_HEADERS)

    response = client.get("/tw-en-invite", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == target

    response = client.get("/tw-en-invite", headers=BOT_HEADERS)
    assert response.status_code == 200
    assert 'lang="en"' in response.text

    assert client.get("/no-such-slug", follow_redirects=False).status_code == 404

def test_qr_code(client, event):
    response = client.get(f"/events/{event['short_code']}/qr.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content[:8] == b"\x89PNG\r\n\x1a\n"

def test_numbered_links_endpoint(client, event):
    response = client.post(f"/admin/events/{event['id']}/links/numbered", json={"count": 3}, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    assert [link["slug"] for link in response.json()["data"]] == ["01", "02", "03"]

    response = client.post(f"/admin/events/{event['id']}/links/numbered", json={"count": 101}, headers=ADMIN_HEADERS)
    assert response.status_code == 422

def test_expired_client_sessions_pruned_on_login():
    security.client_sessions.clear()
    stale = security.create_client_session("event-1", "couple")
    security.client_sessions[stale["token"]]["expires"] = 0

    fresh = security.create_client_session("event-1", "couple")

    assert stale["token"] not in security.client_sessions
    assert fresh["token"] in security.client_sessions
    security.client_sessions.clear()
