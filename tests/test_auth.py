import os
import sys

import pytest
from authlib.integrations.base_client import OAuthError

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from cafeops import create_app
from cafeops.auth import actor_name, is_allowed
from cafeops.extensions import record_store
from cafeops.routes import auth as auth_routes
from sheetdb_fake import TEST_CONFIG, install, sign_in


@pytest.fixture
def app():
    return create_app(TEST_CONFIG)


@pytest.fixture
def client(app):
    install(record_store)
    return app.test_client()


def _identity(monkeypatch, **claims):
    monkeypatch.setattr(auth_routes, "_fetch_identity", lambda: dict(claims))


def test_anonymous_visitors_are_sent_to_sign_in(client):
    response = client.get("/inventory/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]

    response = client.get("/vendors/", follow_redirects=True)
    assert b"Please sign in to continue." in response.data
    assert b"Staff sign in" in response.data


def test_home_requires_sign_in(client):
    response = client.get("/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]


def test_allow_list_is_case_insensitive(app):
    with app.app_context():
        assert is_allowed("manager@cafe.test")
        assert is_allowed("  BARISTA@cafe.test ")
        assert not is_allowed("someone@cafe.test")
        assert not is_allowed("")
        assert not is_allowed(None)


def test_callback_signs_in_allowed_staff(client, monkeypatch):
    _identity(monkeypatch, email="Manager@Cafe.test", name="Mo Manager")

    response = client.get("/auth/callback", follow_redirects=True)

    assert b"Signed in as Mo Manager" in response.data
    assert b"Dashboard" in response.data
    assert client.get("/inventory/").status_code == 200


def test_callback_returns_to_requested_page(client, monkeypatch):
    _identity(monkeypatch, email="barista@cafe.test", name="Bea")
    client.get("/auth/login?next=/vendors/")

    response = client.get("/auth/callback")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/vendors/")


def test_callback_ignores_offsite_next(client, monkeypatch):
    _identity(monkeypatch, email="barista@cafe.test", name="Bea")
    client.get("/auth/login?next=https://evil.example/steal")

    response = client.get("/auth/callback")

    assert response.headers["Location"].endswith("/")
    assert "evil.example" not in response.headers["Location"]


def test_callback_denies_unknown_accounts(client, monkeypatch):
    _identity(monkeypatch, email="stranger@elsewhere.test", name="Stranger")

    response = client.get("/auth/callback", follow_redirects=True)

    assert b"Access denied" in response.data
    assert client.get("/").status_code == 302


def test_callback_reports_provider_errors(client, monkeypatch):
    def fail():
        raise OAuthError(error="access_denied", description="user cancelled")

    monkeypatch.setattr(auth_routes, "_fetch_identity", fail)

    response = client.get("/auth/callback", follow_redirects=True)

    assert b"Sign-in failed. Please try again." in response.data


def test_google_login_needs_client_id(client):
    response = client.get("/auth/google", follow_redirects=True)
    assert b"Google sign-in is not configured" in response.data


def test_logout_clears_the_session(client):
    sign_in(client)
    assert client.get("/inventory/").status_code == 200

    response = client.get("/auth/logout", follow_redirects=True)

    assert b"Signed out" in response.data
    assert client.get("/inventory/").status_code == 302


def test_removed_staff_lose_access(client):
    sign_in(client, email="former@cafe.test", name="Former")
    assert client.get("/inventory/").status_code == 302


def test_actor_name_falls_back_for_anonymous(app):
    with app.test_request_context("/"):
        assert actor_name() == "Unknown User"
