"""Client for the Impressa backend REST API.

Every page in the storefront is a thin wrapper around one of these calls.
Catalog reads and auth are anonymous; everything else sends the user's
bearer token.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from impressa.app.common.errors import BackendError
from impressa.app.common.request_context import REQUEST_ID_HEADER, current_request_id

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin wrapper over `requests.Session`, configured from the Flask app."""

    def __init__(self, base_url: str | None = None, timeout: float = 15, session: requests.Session | None = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def init_app(self, app) -> None:
        self.base_url = app.config["API_BASE_URL"].rstrip("/")
        self.timeout = app.config.get("API_TIMEOUT", self.timeout)
        app.extensions["impressa_backend"] = self

    # --- transport ---

    def _request(self, method: str, path: str, token: str | None = None, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        rid = current_request_id()
        if rid:
            headers[REQUEST_ID_HEADER] = rid

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise BackendError(f"Could not reach the store service: {e}") from e

        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.status_code >= 400:
            message = _error_message(payload) or f"HTTP {response.status_code}"
            logger.warning("%s %s -> %s: %s", method, url, response.status_code, message)
            raise BackendError(message, status_code=response.status_code, payload=payload)

        if response.content and payload is None:
            raise BackendError("Malformed response from the store service", status_code=response.status_code)
        return payload

    # --- auth ---

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        if not isinstance(data, dict) or not data.get("token"):
            raise BackendError("Login failed. Try again.", payload=data)
        return data

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST", "/auth/register", json={"username": username, "email": email, "password": password}
        )
        # The backend may answer 200 with an {"error": ...} body.
        if isinstance(data, dict) and data.get("error"):
            raise BackendError(_error_message(data), payload=data)
        return data or {}

    # --- catalog ---

    def list_templates(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/templates")
        return data if isinstance(data, list) else []

    def get_template(self, template_id: str) -> Dict[str, Any]:
        data = self._request("GET", f"/templates/{template_id}")
        if not isinstance(data, dict):
            raise BackendError("Product not found.", status_code=404)
        return data

    # --- cart ---

    def get_cart(self, token: str) -> Dict[str, Any]:
        data = self._request("GET", "/cart/", token=token)
        return data if isinstance(data, dict) else {}

    def add_to_cart(
        self,
        token: str,
        template_id: str,
        item_type: str,
        quantity: int,
        price: float,
        design_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        body = {
            "templateId": template_id,
            "designId": design_id,
            "itemType": item_type,
            "quantity": quantity,
            "price": price,
        }
        if options:
            body.update(options)
        return self._request("POST", "/cart/add", token=token, json=body)

    def update_cart_item(self, token: str, item_id: str, quantity: int) -> Any:
        return self._request("POST", "/cart/update", token=token, json={"id": item_id, "quantity": quantity})

    def remove_cart_item(self, token: str, item_id: str) -> Any:
        return self._request("DELETE", f"/cart/remove/{item_id}", token=token)

    def clear_cart(self, token: str) -> Any:
        return self._request("DELETE", "/cart/clear", token=token)

    # --- payments ---

    def initialize_payment(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("POST", "/pay/initialize", token=token, json=payload)
        return data if isinstance(data, dict) else {}

    def verify_payment(self, token: str, reference: str) -> Dict[str, Any]:
        data = self._request("GET", f"/pay/verify/{reference}", token=token)
        return data if isinstance(data, dict) else {}

    # --- orders ---

    def list_my_orders(self, token: str) -> List[Dict[str, Any]]:
        data = self._request("GET", "/orders/user/me", token=token)
        return data if isinstance(data, list) else []


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    err = payload.get("error")
    if isinstance(err, dict):
        return err.get("message")
    if isinstance(err, str):
        return err
    msg = payload.get("message")
    return msg if isinstance(msg, str) else None
