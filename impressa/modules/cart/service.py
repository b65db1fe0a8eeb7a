from __future__ import annotations

import logging

from impressa.app.backend import BackendClient
from impressa.modules.cart.pricing import Cart

logger = logging.getLogger(__name__)


class CartService:
    """Cart calls for one signed-in user.

    Mutations never patch local state; callers refetch with `fetch()`
    afterwards so the backend stays the source of truth.
    """

    def __init__(self, backend: BackendClient, token: str):
        self.backend = backend
        self.token = token

    def fetch(self) -> Cart:
        return Cart.from_payload(self.backend.get_cart(self.token))

    def remove(self, item_id: str) -> bool:
        if not item_id:
            return False
        self.backend.remove_cart_item(self.token, item_id)
        logger.info("Removed cart item %s", item_id)
        return True

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        """Set an item's quantity; anything below 1 removes the item."""
        if not item_id:
            return False
        if quantity < 1:
            return self.remove(item_id)
        self.backend.update_cart_item(self.token, item_id, quantity)
        return True

    def clear(self) -> None:
        self.backend.clear_cart(self.token)
        logger.info("Cleared cart")
