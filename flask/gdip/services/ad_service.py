from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app

from security_config import SecurityValidator

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Ad, SponsorProfile

TITLE_MAX_LENGTH = 200
TEXT_MAX_LENGTH = 5000


def _optional_text(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Invalid input", details={key: "Must be a string"})
    return SecurityValidator.sanitize_string(value, TEXT_MAX_LENGTH) or None


class AdService:
    """Sponsor recruitment ads."""

    @staticmethod
    def create_ad(sponsor_id: int, payload: Dict[str, Any]) -> Ad:
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Invalid input", details={"title": "Required"})
        title = SecurityValidator.sanitize_string(title, TITLE_MAX_LENGTH)

        ad = Ad(
            SponsorID=sponsor_id,
            Title=title,
            Description=_optional_text(payload, "description"),
            Requirements=_optional_text(payload, "requirements"),
            Benefits=_optional_text(payload, "benefits"),
        )
        db.session.add(ad)
        db.session.commit()
        current_app.logger.info("[ADS] sponsor=%s created ad=%s", sponsor_id, ad.AdID)
        return ad

    @staticmethod
    def delete_ad(sponsor_id: int, ad_id: int) -> None:
        ad = Ad.query.filter(Ad.AdID == ad_id, Ad.SponsorID == sponsor_id).first()
        if not ad:
            raise NotFoundError("Ad not found")
        db.session.delete(ad)
        db.session.commit()
        current_app.logger.info("[ADS] sponsor=%s deleted ad=%s", sponsor_id, ad_id)

    @staticmethod
    def list_for_sponsor(sponsor_id: int) -> List[Ad]:
        return (
            Ad.query.filter(Ad.SponsorID == sponsor_id)
            .order_by(Ad.CreatedAt.desc(), Ad.AdID.desc())
            .all()
        )

    @staticmethod
    def list_all() -> List[Dict[str, Any]]:
        """Every ad with its sponsor's company name, newest first."""
        rows = (
            db.session.query(Ad, SponsorProfile.CompanyName)
            .outerjoin(SponsorProfile, SponsorProfile.UserID == Ad.SponsorID)
            .order_by(Ad.CreatedAt.desc(), Ad.AdID.desc())
            .all()
        )
        return [dict(AdService.serialize(ad), company_name=company) for ad, company in rows]

    @staticmethod
    def serialize(ad: Ad) -> Dict[str, Any]:
        return {
            "id": ad.AdID,
            "sponsor_id": ad.SponsorID,
            "title": ad.Title,
            "description": ad.Description,
            "requirements": ad.Requirements,
            "benefits": ad.Benefits,
            "created_at": ad.CreatedAt.isoformat() if ad.CreatedAt else None,
        }
