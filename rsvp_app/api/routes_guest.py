"""
Guest-facing API routes
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Query
from sqlalchemy.orm import Session

from rsvp_app.core.db import get_db
from rsvp_app.core.errors import ValidationError
from rsvp_app.schemas.rsvp import RSVPSubmitRequest
from rsvp_app.services.custom_field_service import CustomFieldService
from rsvp_app.services.event_service import EventService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.repositories import GuestRepo, LinkRepo
from rsvp_app.services.resolver_service import ResolverService, Resolution, EVENT_NOT_FOUND
from rsvp_app.services.rsvp_service import RSVPService
from rsvp_app.services.storage_service import StorageService
from rsvp_app.services.text_service import TextOverrides
from rsvp_app.utils.security import rate_limit_check, get_client_ip
from rsvp_app.utils.responses import success_response, error_response, rate_limit_error

logger = logging.getLogger(__name__)

router = APIRouter()


def _invitation_payload(db: Session, resolution: Resolution, lang: Optional[str]) -> dict:
    """Everything the invitation page needs to render the form"""
    event = resolution.event
    guest = resolution.guest
    locale = lang or (guest.language if guest and guest.language else None) \
        or EventService.default_locale(db, event.id)

    status = RSVPService.rsvp_status(event)
    fields = CustomFieldService.list_fields(db, event.id, resolution.link_type)
    texts = TextOverrides.for_event(db, event.id)

    return {
        "event": {
            "id": event.id,
            "code": event.display_code,
            "title": event.title,
            "description": event.description,
            "event_date": event.event_date,
            "location": event.location,
            "theme": event.theme or {},
            "accordion_form_enabled": event.accordion_form_enabled,
            "modern_style_enabled": event.modern_style_enabled,
            "invitation_image": StorageService.invitation_image_url(event.id, locale),
        },
        "guest": {
            "id": guest.id,
            "full_name": guest.display_name,
            "men_count": guest.men_count or 0,
            "women_count": guest.women_count or 0,
        } if guest else None,
        "link_id": resolution.link_id,
        "link_type": resolution.link_type,
        "display_name": resolution.display_name,
        "language": locale,
        "fields": [
            {
                "key": field.key,
                "label": (field.label_translations or {}).get(locale) or field.label,
                "field_type": field.field_type,
                "required": field.required,
                "options": field.options or [],
            }
            for field in fields
        ],
        "texts": texts.as_dict(locale),
        "rsvp": {
            "open": status.open,
            "reason": status.reason,
            "message": RSVPService.status_message(status, locale),
        },
        "link_usable": LinkService.is_link_usable(resolution.link) if resolution.link else True,
        "already_responded": RSVPService.has_responded(db, event.id, guest.id) if guest else False,
    }


@router.post("/submit")
async def submit_rsvp(
    request: Request,
    submit_data: RSVPSubmitRequest,
    db: Session = Depends(get_db)
):
    """Record an RSVP from a resolved invitation"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    event = EventService.get_event(db, submit_data.event_id)
    if not event:
        return error_response(message="Event not found", error_code=EVENT_NOT_FOUND, status_code=404)

    status = RSVPService.rsvp_status(event)
    if not status.open:
        language = EventService.default_locale(db, event.id)
        return error_response(
            message=RSVPService.status_message(status, language),
            error_code=f"rsvp_{status.reason}",
            status_code=403
        )

    if submit_data.guest_id and not GuestRepo.get_by_id(db, event.id, submit_data.guest_id):
        return error_response(message="Guest not found", status_code=404)

    link = None
    if submit_data.link_id:
        link = LinkRepo.get_by_id(db, submit_data.link_id)
        if not link or link.event_id != event.id:
            return error_response(message="Link not found", status_code=404)
        if not LinkService.is_link_usable(link):
            return error_response(message="This link is no longer active", error_code="link_inactive", status_code=403)

    try:
        submission_id = RSVPService.submit(
            db,
            event_id=event.id,
            guest_id=submit_data.guest_id,
            link_id=submit_data.link_id,
            first_name=submit_data.first_name,
            last_name=submit_data.last_name,
            full_name=submit_data.full_name,
            men_count=submit_data.men_count,
            women_count=submit_data.women_count,
            answers=submit_data.answers,
        )
    except ValidationError as e:
        return error_response(message=e.message, details=e.errors, status_code=422)

    if link:
        LinkService.record_link_use(db, link)

    return success_response(
        message="RSVP recorded",
        data={"submission_id": submission_id},
        status_code=201
    )


@router.get("/{event_token}/{path:path}")
async def resolve_invitation(
    event_token: str,
    path: str,
    request: Request,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Resolve /rsvp/<event>/<guest|open|name/...> to an invitation"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    resolution = ResolverService.resolve_path(db, event_token, path)
    if not resolution.ok:
        message = "Event not found" if resolution.error == EVENT_NOT_FOUND else "Invalid link"
        return error_response(message=message, error_code=resolution.error, status_code=404)

    return success_response(
        message="Invitation resolved",
        data=_invitation_payload(db, resolution, lang)
    )
