import pytest

from gdip.errors import NotFoundError, ValidationError
from gdip.extensions import db
from gdip.models import DriverPointsLedger, DriverProfile, SponsorProfile, User
from gdip.services.points_service import PointsService


@pytest.fixture()
def ledger_app(make_service):
    app = make_service("sponsor")
    with app.app_context():
        yield app
        db.session.remove()


def _create_user(email, role, **profile):
    user = User(Email=email, PasswordHash="hash", Role=role)
    db.session.add(user)
    db.session.flush()
    if role == "driver":
        db.session.add(DriverProfile(UserID=user.UserID, **profile))
    elif role == "sponsor":
        db.session.add(SponsorProfile(UserID=user.UserID, **profile))
    db.session.commit()
    return user


def test_balance_is_sum_of_deltas(ledger_app):
    driver = _create_user("d@x.com", "driver")
    acme = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    other = _create_user("t@x.com", "sponsor", CompanyName="Other")

    assert PointsService.get_balance(driver.UserID) == 0
    assert PointsService.add_points(driver.UserID, acme.UserID, 100, "welcome bonus") == 100
    assert PointsService.deduct_points(driver.UserID, acme.UserID, 30, "late delivery") == 70
    assert PointsService.add_points(driver.UserID, other.UserID, 5, "safe week") == 75

    deltas = [e.Delta for e in DriverPointsLedger.query.filter_by(DriverID=driver.UserID)]
    assert PointsService.get_balance(driver.UserID) == sum(deltas) == 75
    assert PointsService.get_balance(driver.UserID, acme.UserID) == 70
    assert PointsService.get_balance(driver.UserID, other.UserID) == 5


def test_entries_newest_first_and_scoped(ledger_app):
    driver = _create_user("d@x.com", "driver")
    acme = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    other = _create_user("t@x.com", "sponsor", CompanyName="Other")

    PointsService.add_points(driver.UserID, acme.UserID, 10, "first")
    PointsService.add_points(driver.UserID, other.UserID, 20, "elsewhere")
    PointsService.add_points(driver.UserID, acme.UserID, 30, "second")

    entries = PointsService.list_entries(driver.UserID, acme.UserID)
    assert [e.Reason for e in entries] == ["second", "first"]
    serialized = PointsService.serialize_entry(entries[0])
    assert serialized["delta"] == 30
    assert serialized["sponsor_id"] == acme.UserID
    assert len(PointsService.list_entries(driver.UserID)) == 3


@pytest.mark.parametrize("amount", [0, -5, 2.5, -3.0, float("inf"), float("nan"), 2**31, "10", True, None])
def test_amount_must_be_positive_integer(ledger_app, amount):
    driver = _create_user("d@x.com", "driver")
    sponsor = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    with pytest.raises(ValidationError):
        PointsService.add_points(driver.UserID, sponsor.UserID, amount, "bonus")
    assert PointsService.get_balance(driver.UserID) == 0


@pytest.mark.parametrize("reason", ["", "   ", None, "x" * 256])
def test_reason_required_and_bounded(ledger_app, reason):
    driver = _create_user("d@x.com", "driver")
    sponsor = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    with pytest.raises(ValidationError):
        PointsService.add_points(driver.UserID, sponsor.UserID, 10, reason)


def test_over_deduction_rejected_by_default(ledger_app):
    driver = _create_user("d@x.com", "driver")
    sponsor = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    PointsService.add_points(driver.UserID, sponsor.UserID, 50, "bonus")

    with pytest.raises(ValidationError) as exc:
        PointsService.deduct_points(driver.UserID, sponsor.UserID, 51, "too much")
    assert exc.value.message == "Insufficient points"
    assert exc.value.details == {"balance": 50, "requested": 51}
    assert PointsService.get_balance(driver.UserID) == 50

    assert PointsService.deduct_points(driver.UserID, sponsor.UserID, 50, "all of it") == 0


def test_negative_balance_allowed_by_flag(make_service):
    app = make_service("sponsor", POINTS_ALLOW_NEGATIVE_BALANCE=True)
    with app.app_context():
        driver = _create_user("d@x.com", "driver")
        sponsor = _create_user("s@x.com", "sponsor", CompanyName="Acme")
        assert PointsService.deduct_points(driver.UserID, sponsor.UserID, 25, "penalty") == -25
        db.session.remove()


def test_unknown_driver_is_not_found(ledger_app):
    sponsor = _create_user("s@x.com", "sponsor", CompanyName="Acme")
    with pytest.raises(NotFoundError):
        PointsService.add_points(9999, sponsor.UserID, 10, "bonus")
    # a sponsor id is not a driver either
    with pytest.raises(NotFoundError):
        PointsService.add_points(sponsor.UserID, sponsor.UserID, 10, "bonus")
