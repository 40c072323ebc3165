"""
Pytest configuration for the GDIP rewards services.
Ensures the flask/ sources are importable when running tests from project root.
"""
import os
import sys

# Add flask directory to path so 'gdip' and 'config' can be imported
TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(TESTS_DIR)
FLASK_DIR = os.path.join(PROJECT_ROOT, "flask")
if FLASK_DIR not in sys.path:
    sys.path.insert(0, FLASK_DIR)

import pytest

from config import TestConfig
from gdip import create_app
from security_config import rate_limiter

DEFAULT_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def _reset_login_throttle():
    rate_limiter.clear()
    yield
    rate_limiter.clear()


@pytest.fixture()
def db_uri(tmp_path):
    # A file database so the three role services can share it like they share MySQL
    return f"sqlite:///{tmp_path / 'gdip.db'}"


@pytest.fixture()
def make_service(db_uri):
    """Factory: make_service("sponsor", POINTS_ALLOW_NEGATIVE_BALANCE=True) -> Flask app."""
    def _make(role, **overrides):
        attrs = {"SQLALCHEMY_DATABASE_URI": db_uri}
        attrs.update(overrides)
        config_object = type(f"{role.title()}TestConfig", (TestConfig,), attrs)
        return create_app(config_object, role=role)
    return _make


@pytest.fixture()
def driver_app(make_service):
    return make_service("driver")


@pytest.fixture()
def sponsor_app(make_service):
    return make_service("sponsor")


@pytest.fixture()
def admin_app(make_service):
    return make_service("admin")


@pytest.fixture()
def driver_client(driver_app):
    return driver_app.test_client()


@pytest.fixture()
def sponsor_client(sponsor_app):
    return sponsor_app.test_client()


@pytest.fixture()
def admin_client(admin_app):
    return admin_app.test_client()


@pytest.fixture()
def signup():
    """Register on `client`'s service and log in; returns the login response JSON."""
    def _signup(client, email, password=DEFAULT_PASSWORD, **profile):
        resp = client.post("/auth/register", json={"email": email, "password": password, **profile})
        assert resp.status_code == 201, resp.get_json()
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()
    return _signup
