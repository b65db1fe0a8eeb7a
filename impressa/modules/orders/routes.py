from __future__ import annotations

import logging

from flask import Blueprint, flash, render_template

from impressa.app.common.auth import login_required
from impressa.app.common.errors import BackendError
from impressa.app.extensions import get_backend
from impressa.app.session_store import SessionStore
from impressa.modules.orders.history import OrderSummary, parse_orders

bp = Blueprint("orders", __name__)
logger = logging.getLogger(__name__)


def _load_orders(store: SessionStore) -> list[OrderSummary]:
    try:
        return parse_orders(get_backend().list_my_orders(store.token))
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Failed to fetch orders: %s", e)
        flash("We couldn't load your orders right now.", "error")
        return []


@bp.get("/orders")
@login_required
def list_orders():
    orders = _load_orders(SessionStore())
    return render_template("pages/orders.html", orders=orders)


@bp.get("/account")
@login_required
def account():
    store = SessionStore()
    return render_template(
        "pages/account.html",
        user=store.user or {},
        address=store.delivery_address,
    )
