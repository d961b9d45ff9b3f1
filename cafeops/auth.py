from __future__ import annotations

from flask import current_app, session
from flask_login import UserMixin, current_user

from cafeops.extensions import login_manager


class StaffUser(UserMixin):
    """A signed-in staff member, identified by their allow-listed email."""

    def __init__(self, email: str, name: str | None = None) -> None:
        self.id = email
        self.email = email
        self.name = name or email

    @property
    def display_name(self) -> str:
        return self.name or self.email


def allowed_emails() -> set[str]:
    raw_value = current_app.config.get("ALLOWED_EMAILS") or ""
    if isinstance(raw_value, (list, tuple, set)):
        parts = raw_value
    else:
        parts = str(raw_value).split(",")
    return {str(part).strip().lower() for part in parts if str(part).strip()}


def is_allowed(email: str | None) -> bool:
    if not email:
        return False
    return email.strip().lower() in allowed_emails()


def load_staff_user(user_id: str) -> StaffUser | None:
    if not is_allowed(user_id):
        return None
    return StaffUser(user_id, session.get("staff_name"))


def actor_name() -> str:
    """Name recorded on log entries and orders for the current request."""

    if getattr(current_user, "is_authenticated", False):
        return current_user.display_name
    return "Unknown User"


def staff_required():
    """``before_request`` handler that sends anonymous visitors to sign in."""

    if not current_user.is_authenticated:
        return login_manager.unauthorized()
    return None
