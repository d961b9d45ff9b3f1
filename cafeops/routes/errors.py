from __future__ import annotations

from flask import Blueprint, current_app, render_template, request
from werkzeug.exceptions import HTTPException

bp = Blueprint("errors", __name__)


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    # Allow HTTP errors that are not 500 to propagate to their default handlers.
    if isinstance(error, HTTPException) and error.code != 500:
        return error

    error_message = "Internal Server Error"
    if isinstance(error, HTTPException) and error.description:
        error_message = error.description
    elif str(error):
        error_message = str(error)

    current_app.logger.exception("Unhandled exception", exc_info=error)

    return (
        render_template(
            "errors/server_error.html",
            error_message=error_message,
            endpoint=request.endpoint,
            path=request.path,
        ),
        500,
    )
