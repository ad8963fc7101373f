"""
Public API routes - no authentication required
"""

import logging
import os
from typing import Optional
from fastapi import APIRouter, Depends, Request, Query, HTTPException
from fastapi.responses import Response, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from rsvp_app.core.db import get_db
from rsvp_app.models.link import OPEN_LINK_SLUG
from rsvp_app.services.event_service import EventService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.qr_service import QRService
from rsvp_app.services.share_service import (
    ShareService, is_bot, language_from_slug, event_code_from_target
)
from rsvp_app.services.short_url_service import ShortURLService

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter()

# Catch-all for short URLs; included after every other router
short_link_router = APIRouter()


def _share_page(request: Request, context: dict):
    return templates.TemplateResponse(request, "share_meta.html", context)


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/share/event")
async def share_event(
    request: Request,
    code: Optional[str] = Query(None),
    eventId: Optional[str] = Query(None),
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Link-preview page for crawlers; people are sent straight to the open link"""
    if not code and not eventId:
        raise HTTPException(status_code=400, detail="Missing event code or ID")

    event = ShareService.find_event(db, code=code, event_id=eventId)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    lang = lang or EventService.default_locale(db, event.id)
    if not is_bot(request.headers.get("user-agent")):
        return RedirectResponse(ShareService.redirect_url(event, lang), status_code=302)

    return _share_page(request, ShareService.build_context(db, event, lang))

@router.get("/events/{event_token}/qr.png")
async def get_qr_code(
    event_token: str,
    slug: str = Query(OPEN_LINK_SLUG),
    db: Session = Depends(get_db)
):
    """QR code image for one of the event's invitation links"""
    event = EventService.get_by_token(db, event_token)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    url = LinkService.build_public_url(LinkService.event_token(db, event), slug)
    qr_bytes = QRService.generate_link_qr(url)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{event.display_code}.png"}
    )


@short_link_router.get("/{slug}")
async def follow_short_url(slug: str, request: Request, db: Session = Depends(get_db)):
    """Redirect a short URL; crawlers get the event's preview page instead"""
    short_url = ShortURLService.resolve(db, slug)
    if not short_url:
        raise HTTPException(status_code=404, detail="Short URL not found")

    code = event_code_from_target(short_url.target_url)
    event = ShareService.find_event(db, code=code) if code else None

    if event is None or not is_bot(request.headers.get("user-agent")):
        return RedirectResponse(short_url.target_url, status_code=302)

    context = ShareService.build_context(db, event, language_from_slug(slug))
    context["redirect_url"] = short_url.target_url
    logger.debug(f"Serving preview for short URL {slug} (event {event.id})")
    return _share_page(request, context)
