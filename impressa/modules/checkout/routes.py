from __future__ import annotations

import logging

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from impressa.app.common.auth import api_login_required, login_required
from impressa.app.common.errors import BackendError, CheckoutError, abort_json
from impressa.app.extensions import get_backend
from impressa.app.session_store import SessionStore
from impressa.modules.cart.routes import cart_service, totals_for
from impressa.modules.checkout.address import DeliveryAddress
from impressa.modules.checkout.payment import InvalidTransition, PaymentSession, PaymentState
from impressa.modules.checkout.service import CheckoutService

bp = Blueprint("checkout", __name__)
logger = logging.getLogger(__name__)


def checkout_service() -> CheckoutService:
    cfg = current_app.config
    return CheckoutService(
        get_backend(),
        SessionStore(),
        poll_interval=cfg["PAYMENT_POLL_INTERVAL"],
        poll_timeout=cfg["PAYMENT_POLL_TIMEOUT"],
        clock=cfg.get("PAYMENT_CLOCK"),
    )


def _status_payload(payment: PaymentSession) -> dict:
    data = {
        "reference": payment.reference,
        "state": payment.state.value,
        "attempts": payment.attempts,
        "status": payment.last_status,
    }
    if payment.state is PaymentState.CONFIRMED:
        data["redirect"] = url_for("orders.list_orders")
    return data


@bp.post("/checkout")
@login_required
def start_checkout():
    form = request.form
    address = DeliveryAddress(
        country=form.get("country", ""),
        state=form.get("state", ""),
        address=form.get("address", ""),
        phone=form.get("phone", ""),
    )
    shipping = form.get("shipping")
    gift_wrap = form.get("gift_wrap") in ("1", "on")
    back = url_for("cart.view_cart", shipping=shipping, gift_wrap="1" if gift_wrap else None)

    service = checkout_service()
    try:
        service.validate(address)
        cart = cart_service().fetch()
        payment = service.begin(cart, totals_for(cart, shipping, gift_wrap), address)
    except CheckoutError as e:
        SessionStore().save_address_draft(address)
        flash(str(e), "error")
        return redirect(back)
    except BackendError as e:
        if e.is_unauthorized:
            raise
        SessionStore().save_address_draft(address)
        logger.error("Checkout could not load cart: %s", e)
        flash("Could not start payment. Please try again.", "error")
        return redirect(back)

    return redirect(url_for("checkout.payment_page", reference=payment.reference))


@bp.get("/checkout/<reference>")
@login_required
def payment_page(reference: str):
    payment = checkout_service().current(reference)
    if payment is None:
        flash("That payment is no longer active.", "info")
        return redirect(url_for("cart.view_cart"))

    cfg = current_app.config
    return render_template(
        "pages/payment.html",
        payment=payment,
        poll_interval_ms=int(cfg["PAYMENT_POLL_INTERVAL"] * 1000),
    )


@bp.get("/api/checkout/<reference>/status")
@api_login_required
def payment_status(reference: str):
    service = checkout_service()
    payment = service.current(reference)
    if payment is None:
        abort_json(404, "not_found", "Unknown payment reference")

    was_confirmed = payment.state is PaymentState.CONFIRMED
    service.poll(payment)
    if payment.state is PaymentState.CONFIRMED and not was_confirmed:
        flash("Payment successful! Your order has been placed.", "success")
    return _status_payload(payment), 200


@bp.post("/api/checkout/<reference>/blocked")
@api_login_required
def payment_blocked(reference: str):
    service = checkout_service()
    payment = service.current(reference)
    if payment is None:
        abort_json(404, "not_found", "Unknown payment reference")

    try:
        service.block(payment)
    except InvalidTransition as e:
        abort_json(409, "conflict", str(e))
    return _status_payload(payment), 200
