"""
Free-standing short URLs (slug -> target redirect)
"""

import logging
import re
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rsvp_app.core.errors import ValidationError
from rsvp_app.models import ShortURL

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ShortURLService:
    """Service for the generic URL shortener"""

    @staticmethod
    def create(db: Session, slug: str, target_url: str) -> ShortURL:
        slug = (slug or "").strip()
        target_url = (target_url or "").strip()
        if not slug or not target_url:
            raise ValidationError("Slug and target URL are required")
        if not SLUG_PATTERN.match(slug):
            raise ValidationError("Slug may only contain letters, digits, '-' and '_'")

        short_url = ShortURL(slug=slug, target_url=target_url)
        db.add(short_url)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError(f"Slug '{slug}' is already taken")
        db.refresh(short_url)
        logger.info(f"Created short URL /{slug} -> {target_url}")
        return short_url

    @staticmethod
    def get(db: Session, short_url_id: str) -> Optional[ShortURL]:
        return db.query(ShortURL).filter(ShortURL.id == short_url_id).first()

    @staticmethod
    def list_all(db: Session) -> List[ShortURL]:
        return db.query(ShortURL).order_by(ShortURL.created_at.desc()).all()

    @staticmethod
    def resolve(db: Session, slug: str) -> Optional[ShortURL]:
        """Active short URL for the slug, with its click counted"""
        short_url = db.query(ShortURL).filter(
            ShortURL.slug == slug,
            ShortURL.is_active.is_(True)
        ).first()
        if not short_url:
            return None
        db.execute(
            update(ShortURL)
            .where(ShortURL.id == short_url.id)
            .values(clicks_count=ShortURL.clicks_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(short_url)
        return short_url

    @staticmethod
    def set_active(db: Session, short_url: ShortURL, is_active: bool) -> ShortURL:
        short_url.is_active = is_active
        db.commit()
        db.refresh(short_url)
        return short_url

    @staticmethod
    def delete(db: Session, short_url: ShortURL) -> None:
        db.delete(short_url)
        db.commit()
