from urllib.parse import urljoin, urlparse

from authlib.integrations.base_client import OAuthError
from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from flask_login import current_user, login_user, logout_user

from cafeops.auth import StaffUser, is_allowed
from cafeops.extensions import oauth

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_redirect_target(target: str | None, *, default: str) -> str:
    if not target:
        return url_for(default)

    if target.startswith("/") and not target.startswith("//"):
        return target

    app_url = urlparse(request.host_url)
    parsed_target = urlparse(urljoin(request.host_url, target))
    if parsed_target.netloc == app_url.netloc:
        return parsed_target.path + (f"?{parsed_target.query}" if parsed_target.query else "")

    return url_for(default)


def _fetch_identity() -> dict:
    """Exchange the provider callback for the signed-in person's OpenID claims."""

    token = oauth.google.authorize_access_token()
    userinfo = token.get("userinfo")
    if not userinfo:
        userinfo = oauth.google.userinfo(token=token)
    return dict(userinfo or {})


@bp.route("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("home"))

    next_url = request.args.get("next")
    if next_url:
        session["login_next"] = next_url
    return render_template(
        "auth/login.html",
        provider_configured=bool(current_app.config.get("GOOGLE_CLIENT_ID")),
    )


@bp.route("/google")
def google_login():
    if not current_app.config.get("GOOGLE_CLIENT_ID"):
        flash("Google sign-in is not configured. Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET.", "danger")
        return redirect(url_for("auth.login"))

    redirect_uri = url_for("auth.callback", _external=True)
    return oauth.google.authorize_redirect(redirect_uri)


@bp.route("/callback")
def callback():
    try:
        identity = _fetch_identity()
    except OAuthError as exc:
        current_app.logger.warning("Google sign-in failed: %s", exc)
        flash("Sign-in failed. Please try again.", "danger")
        return redirect(url_for("auth.login"))

    email = (identity.get("email") or "").strip()
    if not is_allowed(email):
        current_app.logger.warning("Denied sign-in for %s", email or "<no email>")
        flash("Access denied", "danger")
        return redirect(url_for("auth.login"))

    name = (identity.get("name") or "").strip() or email
    session["staff_name"] = name
    login_user(StaffUser(email, name))
    current_app.logger.info("Staff sign-in: %s", email)
    flash(f"Signed in as {name}", "success")

    return redirect(_safe_redirect_target(session.pop("login_next", None), default="home"))


@bp.route("/logout")
def logout():
    logout_user()
    session.pop("staff_name", None)
    flash("Signed out", "success")
    return redirect(url_for("auth.login"))
