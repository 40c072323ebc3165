from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import ROLE_DRIVER, DriverPointsLedger, User

REASON_MAX_LENGTH = 255
POINTS_MAX = 2**31 - 1


def _validate_amount(amount: Any) -> int:
    # bool is an int subclass; True must not count as one point
    if isinstance(amount, float) and amount.is_integer():
        # JSON clients may send 10.0 for 10
        amount = int(amount)
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= POINTS_MAX:
        raise ValidationError("Points must be a positive integer", details={"points": "Expected a positive integer"})
    return amount


def _validate_reason(reason: Any) -> str:
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("Reason is required", details={"reason": "Must not be empty"})
    reason = reason.strip()
    if len(reason) > REASON_MAX_LENGTH:
        raise ValidationError(
            "Reason is too long",
            details={"reason": f"At most {REASON_MAX_LENGTH} characters"},
        )
    return reason


class PointsService:
    """
    Append-only points ledger.

    Entries are never updated or deleted; a balance is always recomputed as
    the sum of deltas. Affiliation checks are the caller's job.
    """

    @staticmethod
    def get_balance(driver_id: int, sponsor_id: Optional[int] = None) -> int:
        """Sum of deltas for the driver, across all sponsors unless sponsor_id is given."""
        query = db.session.query(func.coalesce(func.sum(DriverPointsLedger.Delta), 0)).filter(
            DriverPointsLedger.DriverID == driver_id
        )
        if sponsor_id is not None:
            query = query.filter(DriverPointsLedger.SponsorID == sponsor_id)
        return int(query.scalar() or 0)

    @staticmethod
    def list_entries(driver_id: int, sponsor_id: Optional[int] = None) -> List[DriverPointsLedger]:
        query = DriverPointsLedger.query.filter(DriverPointsLedger.DriverID == driver_id)
        if sponsor_id is not None:
            query = query.filter(DriverPointsLedger.SponsorID == sponsor_id)
        return query.order_by(
            DriverPointsLedger.CreatedAt.desc(), DriverPointsLedger.EntryID.desc()
        ).all()

    @staticmethod
    def add_points(driver_id: int, sponsor_id: int, amount: Any, reason: Any) -> int:
        amount = _validate_amount(amount)
        reason = _validate_reason(reason)
        return PointsService._append(driver_id, sponsor_id, amount, reason)

    @staticmethod
    def deduct_points(driver_id: int, sponsor_id: int, amount: Any, reason: Any) -> int:
        amount = _validate_amount(amount)
        reason = _validate_reason(reason)
        return PointsService._append(driver_id, sponsor_id, -amount, reason)

    @staticmethod
    def _append(driver_id: int, sponsor_id: int, delta: int, reason: str) -> int:
        try:
            # Row lock on the driver serialises concurrent ledger writes (no-op on SQLite)
            driver = (
                User.query.filter(User.UserID == driver_id, User.Role == ROLE_DRIVER)
                .with_for_update()
                .first()
            )
            if not driver:
                raise NotFoundError("Driver not found")

            if delta < 0 and not current_app.config.get("POINTS_ALLOW_NEGATIVE_BALANCE", False):
                balance = PointsService.get_balance(driver_id)
                if balance + delta < 0:
                    raise ValidationError(
                        "Insufficient points",
                        details={"balance": balance, "requested": -delta},
                    )

            db.session.add(
                DriverPointsLedger(
                    DriverID=driver_id,
                    SponsorID=sponsor_id,
                    Delta=delta,
                    Reason=reason,
                )
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        new_balance = PointsService.get_balance(driver_id)
        current_app.logger.info(
            "[POINTS] driver=%s sponsor=%s delta=%+d balance=%s",
            driver_id, sponsor_id, delta, new_balance,
        )
        return new_balance

    @staticmethod
    def serialize_entry(entry: DriverPointsLedger) -> Dict[str, Any]:
        return {
            "id": entry.EntryID,
            "driver_id": entry.DriverID,
            "sponsor_id": entry.SponsorID,
            "delta": entry.Delta,
            "reason": entry.Reason,
            "created_at": entry.CreatedAt.isoformat() if entry.CreatedAt else None,
        }
