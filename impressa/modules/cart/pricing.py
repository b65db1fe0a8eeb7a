"""Cart model and display totals.

The backend's cart payload is loose: item ids come under several names and
numbers may be strings or missing. Everything is normalised here so the
routes and templates only deal with `Cart` and `CartTotals`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Optional

ID_FIELDS = ("id", "itemId", "_id")


def safe_number(value: Any) -> float:
    """Parse a number leniently; anything non-finite or unparseable is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def _optional_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


@dataclass
class CartItem:
    id: str
    title: str = ""
    unit_price: float = 0.0
    quantity: int = 0
    item_total: float = 0.0
    image_url: Optional[str] = None
    item_type: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "CartItem":
        item_id = next((data[k] for k in ID_FIELDS if data.get(k) not in (None, "")), "")
        return cls(
            id=str(item_id),
            title=str(data.get("title") or ""),
            unit_price=safe_number(data.get("unitPrice")),
            quantity=int(safe_number(data.get("quantity"))),
            item_total=safe_number(data.get("itemTotal")),
            image_url=data.get("imageUrl") or None,
            item_type=data.get("itemType") or None,
            raw=dict(data),
        )

    @property
    def line_total(self) -> float:
        if self.item_total > 0:
            return self.item_total
        return self.unit_price * self.quantity


@dataclass
class Cart:
    items: List[CartItem] = field(default_factory=list)
    server_subtotal: Optional[float] = None

    @classmethod
    def from_payload(cls, data: Any) -> "Cart":
        if not isinstance(data, Mapping):
            return cls()
        raw_items = data.get("items")
        items = [CartItem.from_payload(i) for i in raw_items if isinstance(i, Mapping)] if isinstance(raw_items, list) else []
        return cls(items=items, server_subtotal=_optional_number(data.get("subtotal")))

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def quantity_count(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def subtotal(self) -> float:
        if self.server_subtotal is not None:
            return self.server_subtotal
        return sum(i.line_total for i in self.items)

    def item_summary(self) -> Dict[str, Any]:
        """itemType/quantity summary sent with the payment request."""
        types = sorted({i.item_type for i in self.items if i.item_type})
        return {
            "itemType": ", ".join(types) if types else "product",
            "quantity": self.quantity_count,
        }

    def to_payload(self) -> List[Dict[str, Any]]:
        return [i.raw for i in self.items]


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    shipping_method: str
    shipping_fee: float
    gift_wrap_fee: float

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping_fee + self.gift_wrap_fee


def compute_totals(
    cart: Cart,
    shipping_fees: Mapping[str, float],
    shipping_method: str | None = None,
    gift_wrap_fee: float = 0,
    gift_wrap: bool = False,
) -> CartTotals:
    if not shipping_fees:
        raise ValueError("no shipping methods configured")
    if shipping_method not in shipping_fees:
        # unknown or missing method falls back to the first configured one
        shipping_method = next(iter(shipping_fees))
    return CartTotals(
        subtotal=cart.subtotal,
        shipping_method=shipping_method,
        shipping_fee=shipping_fees[shipping_method],
        gift_wrap_fee=gift_wrap_fee if gift_wrap else 0,
    )


def format_currency(value: Any, symbol: str = "₦") -> str:
    rounded = Decimal(str(safe_number(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{symbol}{int(rounded):,}"
