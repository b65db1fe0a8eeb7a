"""Session-based auth guards.

The backend issues the token; we only keep it in the Flask session (see
`SessionStore`) and forward it as a bearer header.
"""

from functools import wraps
from typing import Callable, TypeVar, Any

from flask import flash, redirect, request, url_for

from impressa.app.common.errors import abort_json
from impressa.app.session_store import SessionStore

F = TypeVar("F", bound=Callable[..., Any])


def login_required(fn: F) -> F:
    """Pages: send anonymous visitors to the login form."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not SessionStore().is_authenticated:
            flash("Please log in to continue.", "info")
            return redirect(url_for("auth.login", next=request.path))
        return fn(*args, **kwargs)

    return wrapper  # type: ignore


def api_login_required(fn: F) -> F:
    """JSON endpoints: 401 instead of a redirect."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not SessionStore().is_authenticated:
            abort_json(401, "unauthorized", "Authentication required")
        return fn(*args, **kwargs)

    return wrapper  # type: ignore
