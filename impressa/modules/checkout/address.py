"""Delivery address as kept in the user's session.

Older storefront builds saved the address as a bare string, and later as an
unversioned dict with the phone number stored next to it. Everything read
from the session goes through `parse_stored_address`, which migrates those
shapes to the current schema.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

ADDRESS_SCHEMA_VERSION = 2

REQUIRED_FIELDS = ("country", "state", "address", "phone")

FIELD_LABELS = {
    "country": "Country",
    "state": "State",
    "address": "Address",
    "phone": "Phone number",
}


@dataclass(frozen=True)
class DeliveryAddress:
    country: str = ""
    state: str = ""
    address: str = ""
    phone: str = ""

    def __post_init__(self):
        for name in REQUIRED_FIELDS:
            object.__setattr__(self, name, str(getattr(self, name) or "").strip())

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def lines(self) -> list[str]:
        return [line for line in (self.address, self.state, self.country) if line]

    def to_storage(self) -> Dict[str, Any]:
        return {"version": ADDRESS_SCHEMA_VERSION, **asdict(self)}

    def to_payload(self) -> Dict[str, str]:
        return asdict(self)


def parse_stored_address(raw: Any, legacy_phone: Any = None) -> DeliveryAddress:
    """Read any stored address shape and return the current schema.

    `legacy_phone` is the separately stored phone value from version 1; it
    only fills the phone when the stored address has none.
    """
    phone = str(legacy_phone or "")

    if raw is None or raw == "":
        return DeliveryAddress(phone=phone)

    # version 1: free text only
    if isinstance(raw, str):
        return DeliveryAddress(address=raw, phone=phone)

    if not isinstance(raw, dict):
        return DeliveryAddress(phone=phone)

    version = raw.get("version")
    if version == ADDRESS_SCHEMA_VERSION:
        return DeliveryAddress(
            country=raw.get("country", ""),
            state=raw.get("state", ""),
            address=raw.get("address", ""),
            phone=raw.get("phone") or phone,
        )

    # unversioned dict; "location" was the old key for the free-text line
    return DeliveryAddress(
        country=raw.get("country", ""),
        state=raw.get("state", ""),
        address=raw.get("address") or raw.get("location") or "",
        phone=raw.get("phone") or phone,
    )
