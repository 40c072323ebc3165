# gdip/routes/sponsor_routes.py
from flask import Blueprint, g, jsonify, request

from gdip.decorators.role_required import service_role_required
from gdip.errors import NotFoundError
from gdip.extensions import db
from gdip.models import ROLE_DRIVER, User
from gdip.services.account_service import AccountService
from gdip.services.ad_service import AdService
from gdip.services.affiliation_service import AffiliationService
from gdip.services.application_service import ApplicationService
from gdip.services.catalog_service import CatalogService
from gdip.services.points_service import PointsService
from gdip.sponsor_catalog.search_service import search_marketplace
from gdip.utils.request_helpers import json_body

bp = Blueprint("sponsor", __name__)


def _affiliated_driver_or_404(driver_id: int) -> User:
    driver = db.session.get(User, driver_id)
    if (
        not driver
        or driver.Role != ROLE_DRIVER
        or not AffiliationService.is_affiliated(driver_id, g.user.UserID)
    ):
        raise NotFoundError("Driver not found in your organization")
    return driver


# -------------------- ads --------------------

@bp.get("/ads")
@service_role_required
def list_ads():
    ads = AdService.list_for_sponsor(g.user.UserID)
    return jsonify({"ads": [AdService.serialize(a) for a in ads]})


@bp.post("/ads")
@service_role_required
def create_ad():
    ad = AdService.create_ad(g.user.UserID, json_body())
    return jsonify({"ad": AdService.serialize(ad)}), 201


@bp.delete("/ads/<int:ad_id>")
@service_role_required
def delete_ad(ad_id: int):
    AdService.delete_ad(g.user.UserID, ad_id)
    return jsonify({"ok": True})


# -------------------- applications --------------------

@bp.get("/applications")
@service_role_required
def list_applications():
    apps = ApplicationService.list_for_sponsor(g.user.UserID)
    return jsonify({"applications": [ApplicationService.serialize_for_sponsor(a) for a in apps]})


@bp.get("/applications/<int:application_id>")
@service_role_required
def get_application(application_id: int):
    app_obj = ApplicationService.get_for_sponsor(application_id, g.user.UserID)
    return jsonify({"application": ApplicationService.serialize_for_sponsor(app_obj, detailed=True)})


@bp.put("/applications/<int:application_id>")
@bp.put("/applications/<int:application_id>/review")
@service_role_required
def review_application(application_id: int):
    payload = json_body()
    app_obj = ApplicationService.review(
        application_id,
        g.user.UserID,
        payload.get("status"),
        notes=payload.get("notes"),
        reviewer_id=g.user.UserID,
    )
    return jsonify({"ok": True, "application": ApplicationService.serialize_for_sponsor(app_obj)})


# -------------------- drivers & points --------------------

@bp.get("/drivers")
@service_role_required
def list_drivers():
    drivers = []
    for driver in AffiliationService.list_affiliated_drivers(g.user.UserID):
        row = AccountService.serialize_profile(driver.driver_profile) or {}
        row.pop("user_id", None)
        row.update({
            "id": driver.UserID,
            "email": driver.Email,
            "pointsBalance": PointsService.get_balance(driver.UserID),
        })
        drivers.append(row)
    return jsonify({"drivers": drivers})


@bp.get("/drivers/<int:driver_id>/points")
@service_role_required
def driver_points(driver_id: int):
    driver = _affiliated_driver_or_404(driver_id)
    profile = driver.driver_profile
    entries = PointsService.list_entries(driver_id, g.user.UserID)
    return jsonify({
        "driver": {
            "id": driver.UserID,
            "email": driver.Email,
            "first_name": profile.FirstName if profile else None,
            "last_name": profile.LastName if profile else None,
        },
        "balance": PointsService.get_balance(driver_id),
        "sponsor_balance": PointsService.get_balance(driver_id, g.user.UserID),
        "ledger": [PointsService.serialize_entry(e) for e in entries],
    })


def _adjust_points(driver_id: int, sign: int):
    _affiliated_driver_or_404(driver_id)
    payload = json_body()
    points = payload.get("points")
    reason = payload.get("reason")
    if sign > 0:
        balance = PointsService.add_points(driver_id, g.user.UserID, points, reason)
    else:
        balance = PointsService.deduct_points(driver_id, g.user.UserID, points, reason)
    return jsonify({
        "ok": True,
        "driverId": driver_id,
        "delta": sign * int(points),
        "reason": reason.strip(),
        "balance": balance,
    })


@bp.post("/drivers/<int:driver_id>/points/add")
@service_role_required
def add_points(driver_id: int):
    return _adjust_points(driver_id, 1)


@bp.post("/drivers/<int:driver_id>/points/deduct")
@service_role_required
def deduct_points(driver_id: int):
    return _adjust_points(driver_id, -1)


# -------------------- catalog --------------------

@bp.get("/catalog")
@service_role_required
def list_catalog():
    items = CatalogService.list_for_sponsor(g.user.UserID)
    return jsonify({"items": [CatalogService.serialize(i) for i in items]})


@bp.post("/catalog")
@service_role_required
def add_catalog_item():
    payload = json_body()
    item = CatalogService.add_item(
        g.user.UserID,
        payload.get("title"),
        payload.get("price"),
        payload.get("point_cost", payload.get("pointCost")),
        ebay_item_id=payload.get("ebay_item_id", payload.get("ebayItemId")),
        description=payload.get("description"),
        image_url=payload.get("image_url", payload.get("imageUrl")),
    )
    return jsonify({"item": CatalogService.serialize(item)}), 201


@bp.delete("/catalog/<int:item_id>")
@service_role_required
def remove_catalog_item(item_id: int):
    CatalogService.remove_item(g.user.UserID, item_id)
    return jsonify({"ok": True})


@bp.get("/ebay/search")
@service_role_required
def ebay_search():
    return jsonify({"items": search_marketplace(request.args.get("q"))})
