"""
Affiliation resolver: which sponsor organization does a driver belong to?

Two signals count:
  (a) the driver's profile sponsor_org equals a sponsor's company_name
  (b) an accepted application for the (driver, sponsor) pair

When several sponsors match, the most recently reviewed accepted application
wins; failing that, the profile-name match with the oldest sponsor account.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import (
    APPLICATION_ACCEPTED,
    ROLE_DRIVER,
    ROLE_SPONSOR,
    Application,
    DriverProfile,
    SponsorProfile,
    User,
)


def _clean_org(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class AffiliationService:

    @staticmethod
    def resolve_sponsor_for_driver(driver_id: int) -> Optional[int]:
        accepted = (
            db.session.query(Application.SponsorID)
            .join(User, User.UserID == Application.SponsorID)
            .filter(
                Application.DriverID == driver_id,
                Application.Status == APPLICATION_ACCEPTED,
                User.Role == ROLE_SPONSOR,
            )
            .order_by(Application.ReviewedAt.desc(), Application.ApplicationID.desc())
            .first()
        )
        if accepted:
            return accepted[0]

        profile = db.session.get(DriverProfile, driver_id)
        org = _clean_org(profile.SponsorOrg if profile else None)
        if not org:
            return None

        match = (
            db.session.query(SponsorProfile.UserID)
            .join(User, User.UserID == SponsorProfile.UserID)
            .filter(SponsorProfile.CompanyName == org, User.Role == ROLE_SPONSOR)
            .order_by(SponsorProfile.UserID.asc())
            .first()
        )
        return match[0] if match else None

    @staticmethod
    def is_affiliated(driver_id: int, sponsor_id: int) -> bool:
        return AffiliationService.resolve_sponsor_for_driver(driver_id) == sponsor_id

    @staticmethod
    def get_company_name(sponsor_id: int) -> Optional[str]:
        profile = db.session.get(SponsorProfile, sponsor_id)
        return _clean_org(profile.CompanyName if profile else None)

    @staticmethod
    def resolve_company_for_driver(driver_id: int) -> Optional[str]:
        sponsor_id = AffiliationService.resolve_sponsor_for_driver(driver_id)
        if sponsor_id is None:
            return None
        return AffiliationService.get_company_name(sponsor_id)

    @staticmethod
    def apply_acceptance(driver_id: int, sponsor_id: int) -> None:
        """
        Point the driver's sponsor_org at the accepting sponsor. Overwrites any
        previous value; caller commits.
        """
        company = AffiliationService.get_company_name(sponsor_id)
        if not company:
            return
        profile = db.session.get(DriverProfile, driver_id)
        if profile is None:
            profile = DriverProfile(UserID=driver_id)
            db.session.add(profile)
        profile.SponsorOrg = company

    @staticmethod
    def list_affiliated_drivers(sponsor_id: int) -> List[User]:
        """Drivers whose resolved sponsor is sponsor_id, ordered by name then email."""
        candidate_ids = {
            row[0]
            for row in db.session.query(Application.DriverID)
            .filter(
                Application.SponsorID == sponsor_id,
                Application.Status == APPLICATION_ACCEPTED,
            )
            .all()
        }
        company = AffiliationService.get_company_name(sponsor_id)
        if company:
            candidate_ids.update(
                row[0]
                for row in db.session.query(DriverProfile.UserID)
                .filter(func.trim(DriverProfile.SponsorOrg) == company)
                .all()
            )
        if not candidate_ids:
            return []

        drivers = (
            User.query.options(joinedload(User.driver_profile))
            .filter(User.UserID.in_(candidate_ids), User.Role == ROLE_DRIVER)
            .all()
        )
        drivers = [
            d for d in drivers
            if AffiliationService.resolve_sponsor_for_driver(d.UserID) == sponsor_id
        ]

        def _sort_key(user: User):
            p = user.driver_profile
            return (
                (p.LastName or "").lower() if p else "",
                (p.FirstName or "").lower() if p else "",
                user.Email,
            )

        return sorted(drivers, key=_sort_key)

    @staticmethod
    def list_sponsors() -> List[Dict[str, Any]]:
        rows = (
            db.session.query(User, SponsorProfile)
            .outerjoin(SponsorProfile, SponsorProfile.UserID == User.UserID)
            .filter(User.Role == ROLE_SPONSOR)
            .order_by(SponsorProfile.CompanyName.asc(), User.UserID.asc())
            .all()
        )
        return [
            {
                "id": user.UserID,
                "email": user.Email,
                "company_name": profile.CompanyName if profile else None,
                "first_name": profile.FirstName if profile else None,
                "last_name": profile.LastName if profile else None,
            }
            for user, profile in rows
        ]
