"""
Client dashboard routes - event owners see their own event's responses
"""

import logging
from typing import Dict
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from rsvp_app.core.db import get_db
from rsvp_app.schemas.event import ClientLoginRequest, EventResponse
from rsvp_app.schemas.rsvp import SubmissionResponse
from rsvp_app.services.event_service import EventService
from rsvp_app.services.excel_service import ExcelService
from rsvp_app.services.rsvp_service import RSVPService
from rsvp_app.utils.security import (
    create_client_session, revoke_client_session, verify_client_session,
    rate_limit_check, get_client_ip
)
from rsvp_app.utils.responses import success_response, rate_limit_error, unauthorized_error, not_found_error

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_event(db: Session, session: Dict):
    event = EventService.get_event(db, session["event_id"])
    if not event or not event.client_access_enabled:
        raise not_found_error("Event")
    return event


@router.post("/login")
async def client_login(request: Request, credentials: ClientLoginRequest, db: Session = Depends(get_db)):
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    event = EventService.authenticate_client(db, credentials.username, credentials.password)
    if not event:
        logger.warning(f"Failed client login for {credentials.username!r} from {client_ip}")
        return unauthorized_error("Invalid username or password")

    session = create_client_session(event.id, credentials.username)
    return success_response(
        message="Logged in",
        data={
            "token": session["token"],
            "event_id": event.id,
            "event_title": event.title,
            "expires": session["expires"],
        }
    )

@router.post("/logout")
async def client_logout(session: Dict = Depends(verify_client_session)):
    revoke_client_session(session["token"])
    return success_response(message="Logged out")

@router.get("/dashboard")
async def client_dashboard(session: Dict = Depends(verify_client_session), db: Session = Depends(get_db)):
    """Event summary, statistics and submissions for the logged-in client"""
    event = _session_event(db, session)
    submissions = RSVPService.list_submissions(db, event.id)
    return success_response(
        message="Dashboard retrieved",
        data={
            "event": EventResponse.model_validate(event).model_dump(),
            "statistics": RSVPService.event_statistics(db, event.id),
            "submissions": [SubmissionResponse.model_validate(s).model_dump() for s in submissions],
        }
    )

@router.get("/export.xlsx")
async def client_export(session: Dict = Depends(verify_client_session), db: Session = Depends(get_db)):
    event = _session_event(db, session)
    return Response(
        content=ExcelService.export_guests(db, event),
        media_type=ExcelService.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=guests_{event.display_code}.xlsx"}
    )
