from __future__ import annotations

import click
from flask import Blueprint, current_app

from impressa.app.extensions import get_backend
from impressa.modules.checkout.payment import PaymentConfirmation, PaymentSession, PaymentState

cli_bp = Blueprint("cli", __name__, cli_group=None)


@cli_bp.cli.command("verify-payment")
@click.argument("reference")
@click.option("--token", envvar="IMPRESSA_TOKEN", required=True, help="Bearer token of the paying user.")
def verify_payment(reference: str, token: str) -> None:
    """Poll the backend until REFERENCE is paid or the polling window closes.

    Useful when a customer reports a payment that never showed up in their
    orders.
    """
    backend = get_backend()
    cfg = current_app.config
    payment = PaymentSession(order_id="", reference=reference, authorization_url="", amount=0)
    confirmation = PaymentConfirmation(
        payment,
        verify=lambda ref: backend.verify_payment(token, ref),
        interval=cfg["PAYMENT_POLL_INTERVAL"],
        timeout=cfg["PAYMENT_POLL_TIMEOUT"],
    )

    state = confirmation.run()
    click.echo(f"{reference}: {state.value} after {payment.attempts} attempts (last status: {payment.last_status})")
    if state is not PaymentState.CONFIRMED:
        raise SystemExit(1)
