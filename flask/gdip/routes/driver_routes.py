# gdip/routes/driver_routes.py
from flask import Blueprint, g, jsonify

from gdip.decorators.role_required import service_role_required
from gdip.errors import ValidationError
from gdip.services.ad_service import AdService
from gdip.services.affiliation_service import AffiliationService
from gdip.services.application_service import ApplicationService
from gdip.services.catalog_service import CatalogService
from gdip.services.points_service import PointsService
from gdip.utils.request_helpers import json_body, optional_int

bp = Blueprint("driver", __name__)


@bp.get("/sponsors")
@service_role_required
def list_sponsors():
    return jsonify({"sponsors": AffiliationService.list_sponsors()})


@bp.get("/ads")
@service_role_required
def list_ads():
    return jsonify({"ads": AdService.list_all()})


@bp.post("/applications")
@service_role_required
def submit_application():
    payload = json_body()
    sponsor_id = optional_int(payload, "sponsorId", "sponsor_id")
    if sponsor_id is None:
        raise ValidationError("Invalid input", details={"sponsorId": "Required"})
    ad_id = optional_int(payload, "adId", "ad_id")

    app_obj = ApplicationService.submit(g.user.UserID, sponsor_id, ad_id)
    return jsonify({"application": ApplicationService.serialize_for_driver(app_obj)}), 201


@bp.get("/applications")
@service_role_required
def my_applications():
    apps = ApplicationService.list_for_driver(g.user.UserID)
    return jsonify({"applications": [ApplicationService.serialize_for_driver(a) for a in apps]})


@bp.get("/catalog")
@service_role_required
def catalog():
    """Items curated by the driver's sponsor; empty when unaffiliated."""
    items = CatalogService.list_for_affiliated_driver(g.user.UserID)
    return jsonify({"items": [CatalogService.serialize(i) for i in items]})


@bp.get("/me/points")
@service_role_required
def my_points():
    driver_id = g.user.UserID
    sponsor_id = AffiliationService.resolve_sponsor_for_driver(driver_id)
    entries = PointsService.list_entries(driver_id)
    return jsonify({
        "balance": PointsService.get_balance(driver_id),
        "sponsor": {
            "id": sponsor_id,
            "company_name": AffiliationService.get_company_name(sponsor_id),
        } if sponsor_id is not None else None,
        "ledger": [PointsService.serialize_entry(e) for e in entries],
    })
