"""Typed access to the browser session.

Pages never read `flask.session` keys directly; they go through
`SessionStore`. Auth changes are broadcast on the `auth_changed` signal and
counted in `auth_version`, which other open tabs poll through
`GET /api/session` to notice a login or logout made elsewhere.
"""
from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional

from blinker import Namespace
from flask import session

from impressa.modules.checkout.address import DeliveryAddress, parse_stored_address

_signals = Namespace()

#: Sent with `sender=SessionStore`, `user=<dict or None>`, `version=<int>`.
auth_changed = _signals.signal("auth-changed")

TOKEN_KEY = "impressa_token"
USER_KEY = "impressa_user"
ADDRESS_KEY = "impressa_address"
LEGACY_PHONE_KEY = "impressa_phone"
ADDRESS_DRAFT_KEY = "impressa_address_draft"
AUTH_VERSION_KEY = "impressa_auth_version"
PAYMENT_KEY = "impressa_payment"


class SessionStore:
    def __init__(self, storage: MutableMapping[str, Any] | None = None):
        self._storage = storage

    @property
    def storage(self) -> MutableMapping[str, Any]:
        return session if self._storage is None else self._storage

    # --- auth ---

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(TOKEN_KEY) or None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        user = self.storage.get(USER_KEY)
        return user if isinstance(user, dict) else None

    @property
    def email(self) -> Optional[str]:
        return (self.user or {}).get("email")

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def auth_version(self) -> int:
        return int(self.storage.get(AUTH_VERSION_KEY, 0))

    def sign_in(self, token: str, user: Optional[Dict[str, Any]]) -> None:
        self.storage[TOKEN_KEY] = token
        self.storage[USER_KEY] = user if isinstance(user, dict) else None
        self._bump()

    def sign_out(self) -> None:
        for key in (TOKEN_KEY, USER_KEY, PAYMENT_KEY, ADDRESS_DRAFT_KEY):
            self.storage.pop(key, None)
        self._bump()

    def _bump(self) -> None:
        version = self.auth_version + 1
        self.storage[AUTH_VERSION_KEY] = version
        auth_changed.send(SessionStore, user=self.user, version=version)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "authenticated": self.is_authenticated,
            "user": self.user,
            "version": self.auth_version,
        }

    # --- delivery address ---

    @property
    def delivery_address(self) -> DeliveryAddress:
        return parse_stored_address(self.storage.get(ADDRESS_KEY), self.storage.get(LEGACY_PHONE_KEY))

    def save_delivery_address(self, address: DeliveryAddress) -> None:
        self.storage[ADDRESS_KEY] = address.to_storage()
        self.storage.pop(LEGACY_PHONE_KEY, None)
        self.storage.pop(ADDRESS_DRAFT_KEY, None)

    def save_address_draft(self, address: DeliveryAddress) -> None:
        """Keep what was typed into a checkout form that failed, for one redisplay."""
        self.storage[ADDRESS_DRAFT_KEY] = address.to_storage()

    def pop_address_draft(self) -> Optional[DeliveryAddress]:
        raw = self.storage.pop(ADDRESS_DRAFT_KEY, None)
        return parse_stored_address(raw) if raw else None

    # --- in-flight payment ---

    @property
    def payment(self) -> Optional[Dict[str, Any]]:
        data = self.storage.get(PAYMENT_KEY)
        return data if isinstance(data, dict) else None

    def save_payment(self, data: Dict[str, Any]) -> None:
        self.storage[PAYMENT_KEY] = data

    def clear_payment(self) -> None:
        self.storage.pop(PAYMENT_KEY, None)
