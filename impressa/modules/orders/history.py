from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

from impressa.modules.cart.pricing import safe_number
from impressa.modules.checkout.address import DeliveryAddress, parse_stored_address

STATUS_LABELS = {
    "paid": "Paid",
    "shipped": "Shipped",
    "delivered": "Delivered",
}


def _parse_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "—"
    # e.g. "5 Jan 2025, 14:30"
    return f"{value.day} {value.strftime('%b %Y, %H:%M')}"


@dataclass
class OrderSummary:
    id: str
    status: str
    item_type: str
    quantity: int
    total_amount: float
    payment_ref: str
    delivery_address: Optional[DeliveryAddress]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "OrderSummary":
        raw_address = data.get("deliveryAddress")
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            status=str(data.get("status") or "pending").lower(),
            item_type=str(data.get("itemType") or ""),
            quantity=int(safe_number(data.get("quantity"))),
            total_amount=safe_number(data.get("totalAmount")),
            payment_ref=str(data.get("paymentRef") or ""),
            delivery_address=parse_stored_address(raw_address) if raw_address else None,
            created_at=_parse_date(data.get("createdAt")),
            updated_at=_parse_date(data.get("updatedAt")),
        )

    @property
    def short_id(self) -> str:
        return self.id[-6:]

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, "Pending")


def parse_orders(payload: Any) -> List[OrderSummary]:
    if not isinstance(payload, list):
        return []
    return [OrderSummary.from_payload(o) for o in payload if isinstance(o, Mapping)]
