from datetime import datetime, timedelta

import pytest

from gdip.extensions import db
from gdip.models import Application, DriverProfile, SponsorProfile, User
from gdip.services.affiliation_service import AffiliationService


@pytest.fixture()
def app_context(make_service):
    app = make_service("sponsor")
    with app.app_context():
        yield app
        db.session.remove()


def _create_driver(email, sponsor_org=None, last_name=None, first_name=None):
    user = User(Email=email, PasswordHash="hash", Role="driver")
    db.session.add(user)
    db.session.flush()
    db.session.add(DriverProfile(UserID=user.UserID, SponsorOrg=sponsor_org, LastName=last_name, FirstName=first_name))
    db.session.commit()
    return user


def _create_sponsor(email, company):
    user = User(Email=email, PasswordHash="hash", Role="sponsor")
    db.session.add(user)
    db.session.flush()
    db.session.add(SponsorProfile(UserID=user.UserID, CompanyName=company))
    db.session.commit()
    return user


def _accepted(driver, sponsor, reviewed_at):
    db.session.add(
        Application(
            DriverID=driver.UserID,
            SponsorID=sponsor.UserID,
            Status="accepted",
            ActiveSlot=1,
            ReviewedAt=reviewed_at,
            ReviewedBy=sponsor.UserID,
        )
    )
    db.session.commit()


def test_unaffiliated_driver_resolves_to_none(app_context):
    driver = _create_driver("d@x.com")
    _create_sponsor("s@x.com", "Acme")
    assert AffiliationService.resolve_sponsor_for_driver(driver.UserID) is None
    assert AffiliationService.resolve_company_for_driver(driver.UserID) is None


def test_profile_org_match_is_trimmed_and_exact(app_context):
    acme = _create_sponsor("s@x.com", "Acme")
    driver = _create_driver("d@x.com", sponsor_org="  Acme ")
    assert AffiliationService.resolve_sponsor_for_driver(driver.UserID) == acme.UserID
    assert AffiliationService.is_affiliated(driver.UserID, acme.UserID)

    other = _create_driver("e@x.com", sponsor_org="acme")
    assert AffiliationService.resolve_sponsor_for_driver(other.UserID) is None


def test_profile_match_prefers_oldest_sponsor_account(app_context):
    first = _create_sponsor("s1@x.com", "Acme")
    _create_sponsor("s2@x.com", "Acme")
    driver = _create_driver("d@x.com", sponsor_org="Acme")
    assert AffiliationService.resolve_sponsor_for_driver(driver.UserID) == first.UserID


def test_accepted_application_beats_profile_match(app_context):
    acme = _create_sponsor("s@x.com", "Acme")
    beta = _create_sponsor("b@x.com", "Beta")
    driver = _create_driver("d@x.com", sponsor_org="Acme")

    _accepted(driver, beta, datetime.utcnow())
    assert AffiliationService.resolve_sponsor_for_driver(driver.UserID) == beta.UserID
    assert not AffiliationService.is_affiliated(driver.UserID, acme.UserID)


def test_most_recent_acceptance_wins(app_context):
    acme = _create_sponsor("s@x.com", "Acme")
    beta = _create_sponsor("b@x.com", "Beta")
    driver = _create_driver("d@x.com")
    now = datetime.utcnow()

    _accepted(driver, beta, now)
    _accepted(driver, acme, now - timedelta(days=1))
    assert AffiliationService.resolve_sponsor_for_driver(driver.UserID) == beta.UserID
    assert AffiliationService.resolve_company_for_driver(driver.UserID) == "Beta"


def test_apply_acceptance_overwrites_org_and_creates_profile(app_context):
    acme = _create_sponsor("s@x.com", "Acme")
    driver = _create_driver("d@x.com", sponsor_org="Old Co")
    AffiliationService.apply_acceptance(driver.UserID, acme.UserID)
    db.session.commit()
    assert db.session.get(DriverProfile, driver.UserID).SponsorOrg == "Acme"

    bare = User(Email="bare@x.com", PasswordHash="hash", Role="driver")
    db.session.add(bare)
    db.session.commit()
    AffiliationService.apply_acceptance(bare.UserID, acme.UserID)
    db.session.commit()
    assert db.session.get(DriverProfile, bare.UserID).SponsorOrg == "Acme"


def test_affiliated_drivers_sorted_by_name_then_email(app_context):
    acme = _create_sponsor("s@x.com", "Acme")
    beta = _create_sponsor("b@x.com", "Beta")
    zed = _create_driver("z@x.com", sponsor_org="Acme", last_name="Zed", first_name="Al")
    amy = _create_driver("amy@x.com", sponsor_org="Acme", last_name="Able", first_name="Amy")
    ann = _create_driver("ann@x.com", sponsor_org="Acme", last_name="Able", first_name="Amy")
    moved = _create_driver("m@x.com", sponsor_org="Acme", last_name="Moved")
    _accepted(moved, beta, datetime.utcnow())

    drivers = AffiliationService.list_affiliated_drivers(acme.UserID)
    assert [d.UserID for d in drivers] == [amy.UserID, ann.UserID, zed.UserID]
    assert [d.UserID for d in AffiliationService.list_affiliated_drivers(beta.UserID)] == [moved.UserID]
