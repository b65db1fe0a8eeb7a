from __future__ import annotations

import logging

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from impressa.app.common.auth import login_required
from impressa.app.common.errors import BackendError
from impressa.app.common.validation import form_int
from impressa.app.extensions import get_backend
from impressa.app.session_store import SessionStore
from impressa.modules.cart.pricing import Cart, compute_totals
from impressa.modules.cart.service import CartService

bp = Blueprint("cart", __name__)
logger = logging.getLogger(__name__)


def cart_service() -> CartService:
    return CartService(get_backend(), SessionStore().token)


def load_cart() -> Cart:
    """Current cart, or an empty one (with an error flash) if the fetch fails."""
    try:
        return cart_service().fetch()
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Failed to fetch cart: %s", e)
        flash("We couldn't load your cart. Please refresh to try again.", "error")
        return Cart()


def totals_for(cart: Cart, shipping_method: str | None, gift_wrap: bool):
    cfg = current_app.config
    return compute_totals(
        cart,
        cfg["SHIPPING_FEES"],
        shipping_method or cfg["DEFAULT_SHIPPING_METHOD"],
        gift_wrap_fee=cfg["GIFT_WRAP_FEE"],
        gift_wrap=gift_wrap,
    )


@bp.get("/cart")
@login_required
def view_cart():
    cart = load_cart()
    if cart.is_empty:
        return render_template("pages/cart_empty.html")

    totals = totals_for(cart, request.args.get("shipping"), request.args.get("gift_wrap") in ("1", "on"))
    store = SessionStore()
    return render_template(
        "pages/cart.html",
        cart=cart,
        totals=totals,
        shipping_fees=current_app.config["SHIPPING_FEES"],
        address=store.pop_address_draft() or store.delivery_address,
    )


@bp.post("/cart/items/quantity")
@login_required
def update_quantity():
    item_id = (request.form.get("item_id") or "").strip()
    quantity = form_int("quantity", 1)
    try:
        cart_service().update_quantity(item_id, quantity)
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Update quantity failed: %s", e)
        flash("Could not update the quantity.", "error")
    return redirect(url_for("cart.view_cart"))


@bp.post("/cart/items/remove")
@login_required
def remove_item():
    item_id = (request.form.get("item_id") or "").strip()
    try:
        cart_service().remove(item_id)
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Delete failed: %s", e)
        flash("Could not remove the item.", "error")
    return redirect(url_for("cart.view_cart"))


@bp.post("/cart/clear")
@login_required
def clear_cart():
    try:
        cart_service().clear()
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Clear cart failed: %s", e)
        flash("Could not clear the cart.", "error")
    return redirect(url_for("cart.view_cart"))
