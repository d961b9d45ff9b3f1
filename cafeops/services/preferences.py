from __future__ import annotations

from cafeops import repositories
from cafeops.models import UserPreference


def get_or_create(email: str) -> UserPreference:
    """Return the staff member's preferences, creating the default row on first visit."""

    preference = repositories.preferences.get(email)
    if preference is None:
        preference = UserPreference(user_email=email, email_notifications_enabled=False)
        repositories.preferences.create(preference)
    return preference


def set_email_notifications(email: str, enabled: bool) -> UserPreference:
    preference = get_or_create(email)
    if preference.email_notifications_enabled != enabled:
        preference.email_notifications_enabled = enabled
        repositories.preferences.update(preference)
    return preference


def notification_recipients() -> list[str]:
    return [
        preference.user_email
        for preference in repositories.preferences.all()
        if preference.email_notifications_enabled and preference.user_email
    ]
