from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from flask import current_app

from security_config import SecurityValidator

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import CatalogItem
from .affiliation_service import AffiliationService

DEFAULT_POINTS_PER_DOLLAR = 100
PRICE_MAX = Decimal("99999999.99")


def _parse_price(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError("Invalid input", details={"price": "Required"})
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid input", details={"price": "Must be a number"})
    if not price.is_finite() or price <= 0 or price > PRICE_MAX:
        raise ValidationError("Invalid input", details={"price": "Must be greater than 0"})
    # Stored with cents precision; a sub-cent price would land as 0.00
    price = price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if price <= 0:
        raise ValidationError("Invalid input", details={"price": "Must be greater than 0"})
    return price


def _optional_text(value: Any, max_length: int) -> Optional[str]:
    if value is None:
        return None
    return SecurityValidator.sanitize_string(value, max_length) or None


def price_to_points(price_usd: Any, points_per_dollar: Optional[int] = None) -> int:
    """Fixed conversion: ceil(price * points_per_dollar), 100 points per dollar by default."""
    rate = points_per_dollar or current_app.config.get("POINTS_PER_DOLLAR", DEFAULT_POINTS_PER_DOLLAR)
    price = _parse_price(price_usd)
    return int((price * rate).to_integral_value(rounding=ROUND_CEILING))


class CatalogService:
    """Sponsor-curated redeemable items."""

    @staticmethod
    def add_item(
        sponsor_id: int,
        title: Any,
        price: Any,
        point_cost: Any = None,
        *,
        ebay_item_id: Any = None,
        description: Any = None,
        image_url: Any = None,
    ) -> CatalogItem:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Invalid input", details={"title": "Required"})

        parsed_price = _parse_price(price)
        if point_cost is None:
            cost = price_to_points(parsed_price)
        else:
            if isinstance(point_cost, bool) or not isinstance(point_cost, int) or point_cost <= 0:
                raise ValidationError("Invalid input", details={"point_cost": "Must be a positive integer"})
            cost = point_cost

        item = CatalogItem(
            SponsorID=sponsor_id,
            EbayItemID=_optional_text(ebay_item_id, 100),
            Title=SecurityValidator.sanitize_string(title, 255),
            Description=_optional_text(description, 5000),
            ImageURL=_optional_text(image_url, 1024),
            Price=parsed_price,
            PointCost=cost,
        )
        db.session.add(item)
        db.session.commit()
        current_app.logger.info(
            "[CATALOG] sponsor=%s added item=%s price=%s points=%s",
            sponsor_id, item.ItemID, parsed_price, cost,
        )
        return item

    @staticmethod
    def remove_item(sponsor_id: int, item_id: int) -> None:
        item = CatalogItem.query.filter(
            CatalogItem.ItemID == item_id, CatalogItem.SponsorID == sponsor_id
        ).first()
        if not item:
            raise NotFoundError("Catalog item not found")
        db.session.delete(item)
        db.session.commit()
        current_app.logger.info("[CATALOG] sponsor=%s removed item=%s", sponsor_id, item_id)

    @staticmethod
    def list_for_sponsor(sponsor_id: int) -> List[CatalogItem]:
        return (
            CatalogItem.query.filter(CatalogItem.SponsorID == sponsor_id)
            .order_by(CatalogItem.CreatedAt.desc(), CatalogItem.ItemID.desc())
            .all()
        )

    @staticmethod
    def list_for_affiliated_driver(driver_id: int) -> List[CatalogItem]:
        sponsor_id = AffiliationService.resolve_sponsor_for_driver(driver_id)
        if sponsor_id is None:
            return []
        return CatalogService.list_for_sponsor(sponsor_id)

    @staticmethod
    def serialize(item: CatalogItem) -> Dict[str, Any]:
        return {
            "id": item.ItemID,
            "sponsor_id": item.SponsorID,
            "ebay_item_id": item.EbayItemID,
            "title": item.Title,
            "description": item.Description,
            "image_url": item.ImageURL,
            "price": float(item.Price) if item.Price is not None else None,
            "point_cost": item.PointCost,
            "created_at": item.CreatedAt.isoformat() if item.CreatedAt else None,
        }
