from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict

from impressa.app.backend import BackendClient
from impressa.app.common.errors import BackendError, CheckoutError, CheckoutValidationError
from impressa.app.session_store import SessionStore
from impressa.modules.cart.pricing import Cart, CartTotals
from impressa.modules.checkout.address import FIELD_LABELS, DeliveryAddress
from impressa.modules.checkout.payment import PaymentConfirmation, PaymentSession, PaymentState

logger = logging.getLogger(__name__)


class CheckoutService:
    """Starts a payment for the current cart and tracks its confirmation."""

    def __init__(
        self,
        backend: BackendClient,
        store: SessionStore,
        poll_interval: float,
        poll_timeout: float,
        clock: Callable[[], float] | None = None,
        order_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.backend = backend
        self.store = store
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.clock = clock
        self.order_id_factory = order_id_factory

    def build_payload(self, cart: Cart, totals: CartTotals, address: DeliveryAddress, order_id: str) -> Dict[str, Any]:
        return {
            "email": self.store.email,
            "amount": totals.total,
            "orderId": order_id,
            "cart": cart.to_payload(),
            "deliveryAddress": address.to_payload(),
            "shippingMethod": totals.shipping_method,
            **cart.item_summary(),
        }

    def validate(self, address: DeliveryAddress) -> None:
        missing = address.missing_fields()
        if missing:
            raise CheckoutValidationError([FIELD_LABELS[f] for f in missing])

    def begin(self, cart: Cart, totals: CartTotals, address: DeliveryAddress) -> PaymentSession:
        """Validate, remember the address and ask the backend for a payment URL.

        Raises `CheckoutValidationError` before any network call when a
        delivery field is blank.
        """
        self.validate(address)
        if cart.is_empty:
            raise CheckoutError("Your cart is empty.")

        self.store.save_delivery_address(address)

        order_id = self.order_id_factory()
        payload = self.build_payload(cart, totals, address, order_id)
        try:
            data = self.backend.initialize_payment(self.store.token, payload)
        except BackendError as e:
            logger.error("Payment initialization failed for order %s: %s", order_id, e)
            raise CheckoutError("Could not start payment. Please try again.") from e

        authorization_url = data.get("authorization_url")
        reference = data.get("reference")
        if not authorization_url or not reference:
            logger.error("Payment initialization for order %s returned %r", order_id, data)
            raise CheckoutError("Could not start payment. Please try again.")

        payment = PaymentSession(
            order_id=order_id,
            reference=str(reference),
            authorization_url=authorization_url,
            amount=totals.total,
        )
        self.confirmation(payment).start()
        self.store.save_payment(payment.to_dict())
        logger.info("Payment %s initialized for order %s (%s)", payment.reference, order_id, totals.total)
        return payment

    def confirmation(self, payment: PaymentSession) -> PaymentConfirmation:
        kwargs = {}
        if self.clock is not None:
            kwargs["clock"] = self.clock
        return PaymentConfirmation(
            payment,
            verify=lambda ref: self.backend.verify_payment(self.store.token, ref),
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            **kwargs,
        )

    def current(self, reference: str) -> PaymentSession | None:
        data = self.store.payment
        if not data or data.get("reference") != reference:
            return None
        return PaymentSession.from_dict(data)

    def poll(self, payment: PaymentSession) -> PaymentSession:
        """One verification step; clears the cart once confirmed."""
        was_terminal = payment.state.is_terminal
        state = self.confirmation(payment).poll_once()
        if state is PaymentState.CONFIRMED and not was_terminal:
            self._clear_cart()
        self.store.save_payment(payment.to_dict())
        return payment

    def block(self, payment: PaymentSession) -> PaymentSession:
        self.confirmation(payment).mark_blocked()
        self.store.save_payment(payment.to_dict())
        return payment

    def _clear_cart(self) -> None:
        try:
            self.backend.clear_cart(self.store.token)
        except BackendError as e:
            logger.warning("Could not clear cart after payment: %s", e)
