"""
Admin API routes - requires authentication
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from rsvp_app.core.db import get_db
from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Event, Link
from rsvp_app.schemas.event import EventCreate, EventUpdate, EventResponse, EventStatistics, ClientCredentials
from rsvp_app.schemas.guest import GuestCreate, GuestUpdate, GuestResponse
from rsvp_app.schemas.link import NameLinkCreate, NumberedLinksCreate, LinkUpdate, LinkResponse
from rsvp_app.schemas.rsvp import SubmissionUpdate, SubmissionResponse
from rsvp_app.schemas.custom_field import (
    CustomFieldInput, CustomFieldResponse, LanguageCreate, TranslationsUpdate
)
from rsvp_app.schemas.short_url import ShortURLCreate, ShortURLResponse
from rsvp_app.services.code_service import CodeService
from rsvp_app.services.custom_field_service import CustomFieldService, LINK_TYPES
from rsvp_app.services.event_service import EventService
from rsvp_app.services.excel_service import ExcelService
from rsvp_app.services.guest_service import GuestService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.repositories import LinkRepo
from rsvp_app.services.rsvp_service import RSVPService
from rsvp_app.services.short_url_service import ShortURLService
from rsvp_app.services.storage_service import StorageService, MEDIA_KINDS
from rsvp_app.utils.security import verify_admin_token
from rsvp_app.utils.responses import success_response, error_response, not_found_error

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_token)])


def _get_event(db: Session, event_id: str) -> Event:
    event = EventService.get_event(db, event_id)
    if not event:
        raise not_found_error("Event")
    return event


def _invalid(e: ValidationError):
    return error_response(message=e.message, details=e.errors, status_code=422)


def _link_data(db: Session, event: Event, link: Link) -> dict:
    data = LinkResponse.model_validate(link).model_dump()
    data["url"] = LinkService.url_for(db, event, link)
    return data


def _xlsx(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=ExcelService.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

# -------- Events --------

@router.post("/events")
async def create_event(event_data: EventCreate, db: Session = Depends(get_db)):
    """Create a new event"""
    try:
        event = EventService.create_event(db, event_data.model_dump())
    except ValidationError as e:
        return _invalid(e)

    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event).model_dump(),
        status_code=201
    )

@router.get("/events")
async def list_events(db: Session = Depends(get_db)):
    events = EventService.list_events(db)
    return success_response(
        message="Events retrieved successfully",
        data=[EventResponse.model_validate(event).model_dump() for event in events]
    )

@router.get("/events/{event_id}")
async def get_event_details(event_id: str, db: Session = Depends(get_db)):
    """Get detailed event information"""
    event = _get_event(db, event_id)
    data = EventResponse.model_validate(event).model_dump()
    data["statistics"] = RSVPService.event_statistics(db, event.id)
    data["languages"] = [
        {"locale": language.locale, "is_default": language.is_default}
        for language in EventService.list_languages(db, event.id)
    ]
    return success_response(message="Event details retrieved", data=data)

@router.patch("/events/{event_id}")
async def update_event(event_id: str, event_update: EventUpdate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        event = EventService.update_event(db, event, event_update.model_dump(exclude_unset=True))
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Event updated successfully",
        data=EventResponse.model_validate(event).model_dump()
    )

@router.delete("/events/{event_id}")
async def delete_event(event_id: str, db: Session = Depends(get_db)):
    """Delete an event and everything attached to it"""
    event = _get_event(db, event_id)
    EventService.delete_event(db, event)
    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.get("/events/{event_id}/statistics")
async def event_statistics(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    return success_response(
        message="Statistics retrieved",
        data=EventStatistics(**RSVPService.event_statistics(db, event.id)).model_dump()
    )

@router.put("/events/{event_id}/client-access")
async def set_client_access(event_id: str, credentials: ClientCredentials, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        EventService.set_client_credentials(
            db, event, credentials.username, credentials.password, credentials.enabled
        )
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Client access updated",
        data={"username": event.client_username, "enabled": event.client_access_enabled}
    )

# -------- Short codes --------

@router.post("/codes/backfill")
async def backfill_codes(db: Session = Depends(get_db)):
    """Generate short codes for events and guests created without one"""
    events_updated, guests_updated = CodeService.backfill_missing_codes(db)
    return success_response(
        message="Short codes generated",
        data={"events_updated": events_updated, "guests_updated": guests_updated}
    )

# -------- Guests --------

@router.get("/events/{event_id}/guests")
async def search_guests(
    event_id: str,
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Search and list guests for an event"""
    event = _get_event(db, event_id)
    guests, total = GuestService.list_guests(db, event.id, search, page, per_page)
    totals = RSVPService.aggregate_guest_totals(db, event.id)

    guest_data = []
    for guest in guests:
        item = GuestResponse.model_validate(guest).model_dump()
        men, women = totals.get(guest.id, (0, 0))
        item["responded"] = guest.id in totals
        item["confirmed_men"] = men
        item["confirmed_women"] = women
        guest_data.append(item)

    return success_response(
        message="Guests retrieved successfully",
        data={
            "guests": guest_data,
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "pages": (total + per_page - 1) // per_page
            }
        }
    )

@router.post("/events/{event_id}/guests")
async def create_guest(event_id: str, guest_data: GuestCreate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        guest = GuestService.create_guest(db, event.id, guest_data.model_dump())
    except ValidationError as e:
        return _invalid(e)
    CodeService.ensure_guest_code(db, guest)
    return success_response(
        message="Guest added successfully",
        data=GuestResponse.model_validate(guest).model_dump(),
        status_code=201
    )

@router.patch("/events/{event_id}/guests/{guest_id}")
async def update_guest(event_id: str, guest_id: str, guest_update: GuestUpdate, db: Session = Depends(get_db)):
    """Update guest information"""
    event = _get_event(db, event_id)
    guest = GuestService.get_guest(db, event.id, guest_id)
    if not guest:
        raise not_found_error("Guest")
    try:
        guest = GuestService.update_guest(db, guest, guest_update.model_dump(exclude_unset=True))
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Guest updated successfully",
        data=GuestResponse.model_validate(guest).model_dump()
    )

@router.delete("/events/{event_id}/guests/{guest_id}")
async def delete_guest(event_id: str, guest_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    guest = GuestService.get_guest(db, event.id, guest_id)
    if not guest:
        raise not_found_error("Guest")
    GuestService.delete_guest(db, guest)
    return success_response(message="Guest deleted", data={"deleted_guest_id": guest_id})

@router.post("/events/{event_id}/guests/import")
async def import_guests(event_id: str, file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Upload and process an Excel guest list"""
    event = _get_event(db, event_id)

    if not file.filename or not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    success, errors, processed_count = ExcelService.process_excel_upload(
        file_content=file_content,
        event_id=event.id,
        db=db
    )

    if not success:
        return error_response(
            message="Excel file validation failed",
            details=errors,
            status_code=422
        )

    return success_response(
        message=f"Excel file processed successfully. {processed_count} guests imported.",
        data={
            "processed_count": processed_count,
            "filename": file.filename
        }
    )

@router.get("/guests/template.xlsx")
async def download_template():
    """Download the guest import template"""
    return _xlsx(ExcelService.create_template(), "guest_import_template.xlsx")

@router.get("/events/{event_id}/export/guests.xlsx")
async def export_guests(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    return _xlsx(ExcelService.export_guests(db, event), f"guests_{event.display_code}.xlsx")

@router.get("/events/{event_id}/export/submissions.xlsx")
async def export_submissions(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    return _xlsx(ExcelService.export_submissions(db, event), f"rsvp_{event.display_code}.xlsx")

# -------- Links --------

@router.get("/events/{event_id}/links")
async def list_links(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    links = LinkService.list_links(db, event.id)
    return success_response(
        message="Links retrieved successfully",
        data=[_link_data(db, event, link) for link in links]
    )

@router.post("/events/{event_id}/links/name")
async def create_name_link(event_id: str, payload: NameLinkCreate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        link = LinkService.create_name_link(db, event, payload.name)
    except ValidationError as e:
        return _invalid(e)
    return success_response(message="Link created", data=_link_data(db, event, link), status_code=201)

@router.post("/events/{event_id}/links/open")
async def create_open_link(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    link = LinkService.create_open_link(db, event)
    return success_response(message="Open link ready", data=_link_data(db, event, link))

@router.post("/events/{event_id}/links/numbered")
async def create_numbered_links(event_id: str, payload: NumberedLinksCreate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        links = LinkService.create_numbered_links(db, event, payload.count)
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message=f"{len(links)} numbered links created",
        data=[_link_data(db, event, link) for link in links],
        status_code=201
    )

@router.post("/events/{event_id}/guests/{guest_id}/link")
async def create_personal_link(event_id: str, guest_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    guest = GuestService.get_guest(db, event.id, guest_id)
    if not guest:
        raise not_found_error("Guest")
    try:
        link = LinkService.create_personal_link(db, event, guest)
    except ValidationError as e:
        return _invalid(e)
    return success_response(message="Link created", data=_link_data(db, event, link), status_code=201)

@router.patch("/links/{link_id}")
async def update_link(link_id: str, link_update: LinkUpdate, db: Session = Depends(get_db)):
    link = LinkRepo.get_by_id(db, link_id)
    if not link:
        raise not_found_error("Link")
    link = LinkService.update_link(db, link, link_update.model_dump(exclude_unset=True))
    return success_response(message="Link updated", data=_link_data(db, link.event, link))

@router.delete("/links/{link_id}")
async def delete_link(link_id: str, db: Session = Depends(get_db)):
    link = LinkRepo.get_by_id(db, link_id)
    if not link:
        raise not_found_error("Link")
    LinkService.delete_link(db, link)
    return success_response(message="Link deleted", data={"deleted_link_id": link_id})

# -------- Custom fields --------

@router.get("/events/{event_id}/fields")
async def list_fields(
    event_id: str,
    link_type: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db)
):
    event = _get_event(db, event_id)
    fields = CustomFieldService.list_fields(db, event.id, link_type, active_only=not include_inactive)
    return success_response(
        message="Fields retrieved",
        data=[CustomFieldResponse.model_validate(field).model_dump() for field in fields]
    )

@router.put("/events/{event_id}/fields/{link_type}")
async def replace_fields(
    event_id: str,
    link_type: str,
    fields: list[CustomFieldInput],
    db: Session = Depends(get_db)
):
    event = _get_event(db, event_id)
    if link_type not in LINK_TYPES:
        raise not_found_error("Link type")
    try:
        updated = CustomFieldService.replace_fields(
            db, event.id, link_type, [field.model_dump() for field in fields]
        )
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Fields updated",
        data=[CustomFieldResponse.model_validate(field).model_dump() for field in updated]
    )

@router.post("/events/{event_id}/fields/activate")
async def activate_field_by_label(event_id: str, label: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Re-enable a previously removed field by its label"""
    event = _get_event(db, event_id)
    field = CustomFieldService.activate_field_by_label(db, event.id, label)
    if not field:
        raise not_found_error("Inactive field")
    return success_response(
        message="Field activated",
        data=CustomFieldResponse.model_validate(field).model_dump()
    )

@router.post("/fields/{field_id}/activate")
async def activate_field(field_id: str, db: Session = Depends(get_db)):
    field = CustomFieldService.activate_field(db, field_id)
    if not field:
        raise not_found_error("Field")
    return success_response(
        message="Field activated",
        data=CustomFieldResponse.model_validate(field).model_dump()
    )

# -------- Languages --------

def _language_data(language) -> dict:
    return {
        "id": language.id,
        "locale": language.locale,
        "is_default": language.is_default,
        "translations": language.translations or {},
    }

@router.get("/events/{event_id}/languages")
async def list_languages(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    return success_response(
        message="Languages retrieved",
        data=[_language_data(language) for language in EventService.list_languages(db, event.id)]
    )

@router.post("/events/{event_id}/languages")
async def add_language(event_id: str, payload: LanguageCreate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    try:
        language = EventService.add_language(
            db, event.id, payload.locale, payload.is_default, payload.translations
        )
    except ValidationError as e:
        return _invalid(e)
    return success_response(message="Language added", data=_language_data(language), status_code=201)

@router.put("/events/{event_id}/languages/{locale}/translations")
async def set_translations(event_id: str, locale: str, payload: TranslationsUpdate, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    language = EventService.get_language(db, event.id, locale)
    if not language:
        raise not_found_error("Language")
    language = EventService.set_translations(db, language, payload.translations)
    return success_response(message="Translations saved", data=_language_data(language))

@router.post("/events/{event_id}/languages/{locale}/default")
async def set_default_language(event_id: str, locale: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    language = EventService.get_language(db, event.id, locale)
    if not language:
        raise not_found_error("Language")
    language = EventService.set_default_language(db, language)
    return success_response(message="Default language updated", data=_language_data(language))

@router.delete("/events/{event_id}/languages/{locale}")
async def delete_language(event_id: str, locale: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    language = EventService.get_language(db, event.id, locale)
    if not language:
        raise not_found_error("Language")
    EventService.delete_language(db, language)
    return success_response(message="Language removed", data={"locale": locale})

# -------- Submissions --------

@router.get("/events/{event_id}/submissions")
async def list_submissions(event_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    submissions = RSVPService.list_submissions(db, event.id)
    return success_response(
        message="Submissions retrieved",
        data=[SubmissionResponse.model_validate(s).model_dump() for s in submissions]
    )

@router.patch("/events/{event_id}/submissions/{submission_id}")
async def update_submission(
    event_id: str,
    submission_id: str,
    submission_update: SubmissionUpdate,
    db: Session = Depends(get_db)
):
    event = _get_event(db, event_id)
    submission = RSVPService.get_submission(db, event.id, submission_id)
    if not submission:
        raise not_found_error("Submission")
    try:
        submission = RSVPService.update_submission(
            db, submission, submission_update.model_dump(exclude_unset=True)
        )
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Submission updated",
        data=SubmissionResponse.model_validate(submission).model_dump()
    )

@router.delete("/events/{event_id}/submissions/{submission_id}")
async def delete_submission(event_id: str, submission_id: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    submission = RSVPService.get_submission(db, event.id, submission_id)
    if not submission:
        raise not_found_error("Submission")
    RSVPService.delete_submission(db, submission)
    return success_response(message="Submission deleted", data={"deleted_submission_id": submission_id})

# -------- Short URLs --------

@router.get("/short-urls")
async def list_short_urls(db: Session = Depends(get_db)):
    return success_response(
        message="Short URLs retrieved",
        data=[ShortURLResponse.model_validate(s).model_dump() for s in ShortURLService.list_all(db)]
    )

@router.post("/short-urls")
async def create_short_url(payload: ShortURLCreate, db: Session = Depends(get_db)):
    try:
        short_url = ShortURLService.create(db, payload.slug, payload.target_url)
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Short URL created",
        data=ShortURLResponse.model_validate(short_url).model_dump(),
        status_code=201
    )

@router.patch("/short-urls/{short_url_id}")
async def toggle_short_url(short_url_id: str, is_active: bool = Query(...), db: Session = Depends(get_db)):
    short_url = ShortURLService.get(db, short_url_id)
    if not short_url:
        raise not_found_error("Short URL")
    short_url = ShortURLService.set_active(db, short_url, is_active)
    return success_response(
        message="Short URL updated",
        data=ShortURLResponse.model_validate(short_url).model_dump()
    )

@router.delete("/short-urls/{short_url_id}")
async def delete_short_url(short_url_id: str, db: Session = Depends(get_db)):
    short_url = ShortURLService.get(db, short_url_id)
    if not short_url:
        raise not_found_error("Short URL")
    ShortURLService.delete(db, short_url)
    return success_response(message="Short URL deleted", data={"deleted_short_url_id": short_url_id})

# -------- Invitation media --------

@router.post("/events/{event_id}/media/{language}/{kind}")
async def upload_media(
    event_id: str,
    language: str,
    kind: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """Upload the invitation image or PDF for one language"""
    event = _get_event(db, event_id)
    if kind not in MEDIA_KINDS:
        raise not_found_error("Media kind")
    content = await file.read()
    try:
        path = StorageService.upload(event.id, language, kind, file.filename, content)
    except ValidationError as e:
        return _invalid(e)
    return success_response(
        message="Invitation uploaded",
        data={"path": path, "url": StorageService.public_url(path)},
        status_code=201
    )

@router.get("/events/{event_id}/media/{language}/{kind}")
async def get_media(event_id: str, language: str, kind: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    path = StorageService.find(event.id, language, kind)
    if not path:
        raise not_found_error("Invitation file")
    return success_response(
        message="Invitation found",
        data={"path": path, "url": StorageService.public_url(path)}
    )

@router.delete("/events/{event_id}/media/{language}/{kind}")
async def delete_media(event_id: str, language: str, kind: str, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    if not StorageService.delete(event.id, language, kind):
        raise not_found_error("Invitation file")
    return success_response(message="Invitation removed", data={"language": language, "kind": kind})
