from __future__ import annotations

import logging
import re

from flask import Blueprint, flash, redirect, render_template, request, url_for

from impressa.app.common.errors import BackendError
from impressa.app.common.validation import safe_redirect_target
from impressa.app.extensions import get_backend
from impressa.app.session_store import SessionStore

bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)

EMAIL_REGEX = r'^[^\s@]+@[^\s@]+\.[^\s@]{2,}$'


def _safe_next(target: str | None) -> str:
    return safe_redirect_target(target, url_for("catalog.list_products"))


@bp.get("/login")
def login():
    return render_template("pages/login.html", next=request.args.get("next", ""))


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    next_url = request.form.get("next")

    if not email or not password:
        flash("Email and password are required.", "error")
        return redirect(url_for("auth.login", next=next_url))

    try:
        data = get_backend().login(email, password)
    except BackendError as e:
        logger.info("Login failed for %s: %s", email, e)
        message = e.message if e.status_code and e.status_code < 500 else "Login failed. Try again."
        flash(message, "error")
        return redirect(url_for("auth.login", next=next_url))

    SessionStore().sign_in(data["token"], data.get("user"))
    flash("Logged in.", "success")
    return redirect(_safe_next(next_url))


@bp.get("/register")
def register():
    return render_template("pages/register.html")


@bp.post("/register")
def register_post():
    username = (request.form.get("username") or "").strip()
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""

    if not username or not email or not password:
        flash("Username, email and password are required.", "error")
        return redirect(url_for("auth.register"))
    if not re.match(EMAIL_REGEX, email):
        flash("Invalid email format.", "error")
        return redirect(url_for("auth.register"))

    try:
        get_backend().register(username, email, password)
    except BackendError as e:
        logger.info("Registration failed for %s: %s", email, e)
        message = e.message if e.payload else "Registration failed. Try again."
        flash(message, "error")
        return redirect(url_for("auth.register"))

    flash("Account created. Please log in.", "success")
    return redirect(url_for("auth.login"))


@bp.post("/logout")
def logout():
    SessionStore().sign_out()
    flash("Logged out.", "success")
    return redirect(url_for("catalog.list_products"))


@bp.get("/api/session")
def session_state():
    """Auth snapshot; open tabs compare `version` to notice logins/logouts."""
    return SessionStore().snapshot(), 200
