"""
Driver -> sponsor application workflow.

    pending --accept--> accepted   (terminal; driver becomes affiliated)
    pending --reject--> rejected   (terminal; affiliation untouched)

At most one active (pending or accepted) application may exist per
(driver, sponsor) pair. The pre-insert check gives a friendly error; the
unique constraint on (driver_id, sponsor_id, active_slot) enforces it under
concurrency.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    ACTIVE_APPLICATION_STATUSES,
    APPLICATION_ACCEPTED,
    APPLICATION_REJECTED,
    ROLE_SPONSOR,
    Ad,
    Application,
    DriverProfile,
    SponsorProfile,
    User,
)
from .affiliation_service import AffiliationService

REVIEW_DECISIONS = (APPLICATION_ACCEPTED, APPLICATION_REJECTED)
NOTES_MAX_LENGTH = 1000


def _active_application(driver_id: int, sponsor_id: int) -> Optional[Application]:
    return (
        Application.query
        .filter(
            Application.DriverID == driver_id,
            Application.SponsorID == sponsor_id,
            Application.Status.in_(ACTIVE_APPLICATION_STATUSES),
        )
        .first()
    )


class ApplicationService:

    @staticmethod
    def submit(driver_id: int, sponsor_id: int, ad_id: Optional[int] = None) -> Application:
        sponsor = db.session.get(User, sponsor_id)
        if not sponsor or sponsor.Role != ROLE_SPONSOR:
            raise NotFoundError("Sponsor not found")

        if ad_id is not None:
            ad = db.session.get(Ad, ad_id)
            if not ad or ad.SponsorID != sponsor_id:
                raise NotFoundError("Ad not found")

        if _active_application(driver_id, sponsor_id):
            raise ConflictError("You already have an active application with this sponsor")

        app_row = Application(
            DriverID=driver_id,
            SponsorID=sponsor_id,
            AdID=ad_id,
            ActiveSlot=1,
            AppliedAt=datetime.utcnow(),
        )
        db.session.add(app_row)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("You already have an active application with this sponsor")

        current_app.logger.info(
            "[APPLICATIONS] driver=%s applied to sponsor=%s (application=%s, ad=%s)",
            driver_id, sponsor_id, app_row.ApplicationID, ad_id,
        )
        return app_row

    @staticmethod
    def review(
        application_id: int,
        sponsor_id: int,
        decision: Any,
        notes: Any = None,
        reviewer_id: Optional[int] = None,
    ) -> Application:
        if decision not in REVIEW_DECISIONS:
            raise ValidationError(
                "Invalid input",
                details={"status": f"Expected one of {', '.join(REVIEW_DECISIONS)}"},
            )
        if notes is not None:
            if not isinstance(notes, str):
                raise ValidationError("Invalid input", details={"notes": "Must be a string"})
            notes = notes.strip()[:NOTES_MAX_LENGTH] or None

        try:
            app_obj = (
                Application.query
                .filter(
                    Application.ApplicationID == application_id,
                    Application.SponsorID == sponsor_id,
                )
                .with_for_update()
                .first()
            )
            if not app_obj:
                raise NotFoundError("Application not found")
            if app_obj.is_terminal:
                raise ConflictError("This application has already been reviewed")

            app_obj.Status = decision
            app_obj.ReviewedAt = datetime.utcnow()
            app_obj.ReviewedBy = reviewer_id or sponsor_id
            app_obj.Notes = notes

            if decision == APPLICATION_ACCEPTED:
                AffiliationService.apply_acceptance(app_obj.DriverID, sponsor_id)
            else:
                # Frees the (driver, sponsor) slot so the driver may apply again
                app_obj.ActiveSlot = None

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "[APPLICATIONS] sponsor=%s %s application=%s (driver=%s)",
            sponsor_id, decision, application_id, app_obj.DriverID,
        )
        return app_obj

    @staticmethod
    def list_for_driver(driver_id: int) -> List[Application]:
        return (
            Application.query
            .options(joinedload(Application.ad))
            .filter(Application.DriverID == driver_id)
            .order_by(Application.AppliedAt.desc(), Application.ApplicationID.desc())
            .all()
        )

    @staticmethod
    def list_for_sponsor(sponsor_id: int) -> List[Application]:
        return (
            Application.query
            .options(joinedload(Application.driver), joinedload(Application.ad))
            .filter(Application.SponsorID == sponsor_id)
            .order_by(Application.AppliedAt.desc(), Application.ApplicationID.desc())
            .all()
        )

    @staticmethod
    def get_for_sponsor(application_id: int, sponsor_id: int) -> Application:
        app_obj = (
            Application.query
            .filter(
                Application.ApplicationID == application_id,
                Application.SponsorID == sponsor_id,
            )
            .first()
        )
        if not app_obj:
            raise NotFoundError("Application not found")
        return app_obj

    # ---------------- serialization ----------------

    @staticmethod
    def serialize(app_obj: Application) -> Dict[str, Any]:
        return {
            "id": app_obj.ApplicationID,
            "driver_id": app_obj.DriverID,
            "sponsor_id": app_obj.SponsorID,
            "ad_id": app_obj.AdID,
            "status": app_obj.Status,
            "applied_at": app_obj.AppliedAt.isoformat() if app_obj.AppliedAt else None,
            "reviewed_at": app_obj.ReviewedAt.isoformat() if app_obj.ReviewedAt else None,
            "reviewed_by": app_obj.ReviewedBy,
            "notes": app_obj.Notes,
        }

    @staticmethod
    def serialize_for_driver(app_obj: Application) -> Dict[str, Any]:
        data = ApplicationService.serialize(app_obj)
        sponsor_profile = db.session.get(SponsorProfile, app_obj.SponsorID)
        data["company_name"] = sponsor_profile.CompanyName if sponsor_profile else None
        data["ad_title"] = app_obj.ad.Title if app_obj.ad else None
        return data

    @staticmethod
    def serialize_for_sponsor(app_obj: Application, *, detailed: bool = False) -> Dict[str, Any]:
        data = ApplicationService.serialize(app_obj)
        driver = app_obj.driver
        profile = db.session.get(DriverProfile, app_obj.DriverID)
        data["email"] = driver.Email if driver else None
        data["ad_title"] = app_obj.ad.Title if app_obj.ad else None

        fields = ["first_name", "last_name", "phone", "dob"]
        if detailed:
            fields += ["address_line1", "address_line2", "city", "state", "postal_code", "country"]
        attrs = {
            "first_name": "FirstName",
            "last_name": "LastName",
            "phone": "Phone",
            "dob": "DOB",
            "address_line1": "AddressLine1",
            "address_line2": "AddressLine2",
            "city": "City",
            "state": "State",
            "postal_code": "PostalCode",
            "country": "Country",
        }
        for key in fields:
            value = getattr(profile, attrs[key]) if profile else None
            data[key] = value.isoformat() if key == "dob" and value else value
        return data
