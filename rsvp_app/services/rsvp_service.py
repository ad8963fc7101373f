"""
RSVP submission recording and aggregation
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from rsvp_app.core.errors import ValidationError
from rsvp_app.models import Event, Guest, RSVPSubmission

logger = logging.getLogger(__name__)

STATUS_OPEN = "open"
STATUS_DISABLED = "disabled"
STATUS_NOT_YET_OPEN = "not_yet_open"
STATUS_CLOSED = "closed"


@dataclass
class RSVPStatus:
    open: bool
    reason: str
    open_date: Optional[datetime] = None
    close_date: Optional[datetime] = None


_STATUS_MESSAGES = {
    STATUS_DISABLED: {
        "he": "אישורי הגעה לאירוע זה אינם פעילים כרגע",
        "de": "Die Anmeldung für diese Veranstaltung ist derzeit nicht aktiv",
        "en": "RSVP for this event is currently not active",
    },
    STATUS_NOT_YET_OPEN: {
        "he": "אישורי הגעה טרם נפתחו",
        "de": "Die Anmeldung ist noch nicht geöffnet",
        "en": "RSVP is not yet open",
    },
    STATUS_CLOSED: {
        "he": "אישורי הגעה לאירוע זה נסגרו",
        "de": "Die Anmeldung für diese Veranstaltung ist geschlossen",
        "en": "RSVP for this event has closed",
    },
}

_OPENS_ON = {
    "he": "אישורי הגעה ייפתחו בתאריך {date}",
    "de": "Die Anmeldung öffnet am {date}",
    "en": "RSVP will open on {date}",
}


def _check_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer")
    return value


class RSVPService:
    """Service for recording and reading back RSVP submissions"""

    @staticmethod
    def submit(
        db: Session,
        event_id: str,
        guest_id: Optional[str] = None,
        link_id: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        full_name: Optional[str] = None,
        men_count: int = 0,
        women_count: int = 0,
        answers: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Insert one submission row and return its id.

        Counts have no upper bound here, unknown answer keys are kept, and
        the guest row is left untouched. Nothing prevents a guest from
        submitting more than once.
        """
        men_count = _check_count("men_count", men_count)
        women_count = _check_count("women_count", women_count)
        if answers is not None and not isinstance(answers, dict):
            raise ValidationError("answers must be a mapping")

        if not full_name and (first_name or last_name):
            full_name = f"{first_name or ''} {last_name or ''}".strip()

        submission = RSVPSubmission(
            event_id=event_id,
            guest_id=guest_id,
            link_id=link_id,
            first_name=first_name,
            last_name=last_name,
            full_name=full_name,
            men_count=men_count,
            women_count=women_count,
            answers=dict(answers or {}),
            status="submitted",
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)

        logger.info(
            f"RSVP {submission.id} recorded for event {event_id} "
            f"(guest={guest_id}, men={men_count}, women={women_count})"
        )
        return submission.id

    @staticmethod
    def get_submission(db: Session, event_id: str, submission_id: str) -> Optional[RSVPSubmission]:
        return db.query(RSVPSubmission).filter(
            RSVPSubmission.event_id == event_id,
            RSVPSubmission.id == submission_id
        ).first()

    @staticmethod
    def list_submissions(db: Session, event_id: str) -> List[RSVPSubmission]:
        return db.query(RSVPSubmission).filter(
            RSVPSubmission.event_id == event_id
        ).order_by(RSVPSubmission.submitted_at.desc()).all()

    @staticmethod
    def has_responded(db: Session, event_id: str, guest_id: str) -> bool:
        return db.query(RSVPSubmission.id).filter(
            RSVPSubmission.event_id == event_id,
            RSVPSubmission.guest_id == guest_id
        ).first() is not None

    @staticmethod
    def update_submission(db: Session, submission: RSVPSubmission, updates: Dict[str, Any]) -> RSVPSubmission:
        if "men_count" in updates and updates["men_count"] is not None:
            submission.men_count = _check_count("men_count", updates["men_count"])
        if "women_count" in updates and updates["women_count"] is not None:
            submission.women_count = _check_count("women_count", updates["women_count"])
        if updates.get("full_name") is not None:
            submission.full_name = updates["full_name"]
        if updates.get("answers") is not None:
            submission.answers = dict(updates["answers"])
        submission.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(submission)
        return submission

    @staticmethod
    def delete_submission(db: Session, submission: RSVPSubmission) -> None:
        db.delete(submission)
        db.commit()

    @staticmethod
    def aggregate_guest_totals(db: Session, event_id: str) -> Dict[str, Tuple[int, int]]:
        """Sum of (men, women) over every submission of each guest.

        A guest who submits twice is counted twice.
        """
        rows = db.query(
            RSVPSubmission.guest_id,
            func.coalesce(func.sum(RSVPSubmission.men_count), 0),
            func.coalesce(func.sum(RSVPSubmission.women_count), 0)
        ).filter(
            RSVPSubmission.event_id == event_id,
            RSVPSubmission.guest_id.isnot(None)
        ).group_by(RSVPSubmission.guest_id).all()

        return {guest_id: (int(men), int(women)) for guest_id, men, women in rows}

    @staticmethod
    def event_statistics(db: Session, event_id: str) -> Dict[str, int]:
        total_guests = db.query(Guest).filter(Guest.event_id == event_id).count()
        responded = db.query(func.count(func.distinct(RSVPSubmission.guest_id))).filter(
            RSVPSubmission.event_id == event_id,
            RSVPSubmission.guest_id.isnot(None)
        ).scalar() or 0
        total_submissions, men, women = db.query(
            func.count(RSVPSubmission.id),
            func.coalesce(func.sum(RSVPSubmission.men_count), 0),
            func.coalesce(func.sum(RSVPSubmission.women_count), 0)
        ).filter(RSVPSubmission.event_id == event_id).one()

        return {
            "total_guests": total_guests,
            "responded_guests": int(responded),
            "pending_guests": max(total_guests - int(responded), 0),
            "total_submissions": int(total_submissions),
            "confirmed_men": int(men),
            "confirmed_women": int(women),
            "confirmed_total": int(men) + int(women),
        }

    @staticmethod
    def rsvp_status(event: Event, now: Optional[datetime] = None) -> RSVPStatus:
        """Whether the event currently accepts responses"""
        if event.rsvp_enabled is False:
            return RSVPStatus(open=False, reason=STATUS_DISABLED)

        now = now or datetime.utcnow()
        if event.rsvp_open_date and event.rsvp_open_date > now:
            return RSVPStatus(open=False, reason=STATUS_NOT_YET_OPEN, open_date=event.rsvp_open_date)
        if event.rsvp_close_date and event.rsvp_close_date < now:
            return RSVPStatus(open=False, reason=STATUS_CLOSED, close_date=event.rsvp_close_date)
        return RSVPStatus(open=True, reason=STATUS_OPEN)

    @staticmethod
    def status_message(status: RSVPStatus, language: str = "he") -> str:
        if status.open:
            return ""
        lang = language if language in ("he", "de", "en") else "en"
        if status.reason == STATUS_NOT_YET_OPEN and status.open_date:
            return _OPENS_ON[lang].format(date=status.open_date.strftime("%d/%m/%Y %H:%M"))
        return _STATUS_MESSAGES.get(status.reason, {}).get(lang, "")
