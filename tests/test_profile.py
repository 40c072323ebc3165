def test_profile_partial_update_accepts_both_key_styles(driver_client, signup):
    signup(driver_client, "d@x.com", firstName="Dana")

    resp = driver_client.put(
        "/me/profile",
        json={"last_name": "Diaz", "dob": "1990-04-01", "phone": "(555) 123-4567", "address": "1 Main St"},
    )
    assert resp.status_code == 200
    profile = resp.get_json()["profile"]
    assert profile["first_name"] == "Dana"
    assert profile["last_name"] == "Diaz"
    assert profile["dob"] == "1990-04-01"
    assert profile["phone"] == "(555) 123-4567"
    assert profile["address_line1"] == "1 Main St"

    resp = driver_client.put("/me/profile", json={"city": "Clemson", "sponsorOrg": "Acme"})
    profile = resp.get_json()["profile"]
    assert profile["city"] == "Clemson"
    assert profile["sponsor_org"] == "Acme"
    assert profile["last_name"] == "Diaz"


def test_profile_rejects_bad_values(driver_client, signup):
    signup(driver_client, "d@x.com")

    resp = driver_client.put("/me/profile", json={"dob": "04/01/1990", "phone": "12"})
    assert resp.status_code == 400
    details = resp.get_json()["details"]
    assert "dob" in details
    assert "phone" in details

    resp = driver_client.put("/me/profile", json={})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "No profile fields supplied"}


def test_profile_update_creates_missing_row(admin_app, admin_client):
    from gdip.extensions import db
    from gdip.models import AdminProfile
    from gdip.services.account_service import AccountService

    with admin_app.app_context():
        user = AccountService.register("admin", {"email": "root@x.com", "password": "password123"})
        profile = db.session.get(AdminProfile, user.UserID)
        db.session.delete(profile)
        db.session.commit()

    admin_client.post("/auth/login", json={"email": "root@x.com", "password": "password123"})
    assert admin_client.get("/me").get_json()["profile"] is None

    resp = admin_client.put("/me/profile", json={"displayName": "Root"})
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["display_name"] == "Root"


def test_role_field_belongs_to_its_role(sponsor_client, signup):
    signup(sponsor_client, "s@x.com", companyName="Acme")
    resp = sponsor_client.put("/me/profile", json={"companyName": "Acme Freight"})
    assert resp.get_json()["profile"]["company_name"] == "Acme Freight"
    assert "sponsor_org" not in resp.get_json()["profile"]


def test_admin_lists_users_by_role(admin_client, driver_client, sponsor_client, signup):
    signup(driver_client, "d@x.com")
    signup(sponsor_client, "s@x.com", companyName="Acme")
    signup(admin_client, "a@x.com", displayName="Ops")

    resp = admin_client.get("/users")
    assert resp.status_code == 200
    assert {u["email"] for u in resp.get_json()["users"]} == {"d@x.com", "s@x.com", "a@x.com"}

    resp = admin_client.get("/users?role=sponsor")
    users = resp.get_json()["users"]
    assert [u["email"] for u in users] == ["s@x.com"]

    resp = admin_client.get(f"/users/{users[0]['id']}")
    assert resp.get_json()["profile"]["company_name"] == "Acme"

    assert admin_client.get("/users?role=pilot").status_code == 400
    assert admin_client.get("/users/9999").status_code == 404


def test_admin_routes_need_admin_token(driver_client, admin_client, signup):
    signup(driver_client, "d@x.com")
    assert admin_client.get("/users").status_code == 401
