import pytest

from impressa.app.common.errors import BackendError
from impressa.app.session_store import ADDRESS_KEY, PAYMENT_KEY

from conftest import Responses

CART = {
    "items": [
        {"id": "i1", "title": "Leather Tote", "unitPrice": 10000, "quantity": 2, "itemType": "bags"},
    ],
}

ADDRESS = {"country": "Nigeria", "state": "Lagos", "address": "12 Marina", "phone": "08000000000"}


@pytest.fixture()
def started(user_client, backend):
    """A checkout that reached the payment page."""
    backend.on("GET", "/cart/", CART)
    backend.on("POST", "/pay/initialize", {"authorization_url": "https://pay.test/abc", "reference": "ref-1"})
    r = user_client.post("/checkout", data={**ADDRESS, "shipping": "standard"})
    assert r.status_code == 302
    return r


@pytest.mark.parametrize("blank", ["country", "state", "address", "phone"])
def test_blank_field_blocks_checkout_without_network(user_client, backend, blank):
    data = {**ADDRESS, blank: "   "}

    r = user_client.post("/checkout", data=data, follow_redirects=False)

    assert r.status_code == 302
    assert "/cart" in r.headers["Location"]
    assert backend.calls == []


def test_validation_message_is_flashed(user_client, backend):
    backend.on("GET", "/cart/", CART)
    r = user_client.post("/checkout", data={**ADDRESS, "phone": ""}, follow_redirects=True)
    assert "Please fill in: Phone number" in r.get_data(as_text=True)


def test_typed_address_survives_validation_error(user_client, backend):
    backend.on("GET", "/cart/", CART)

    html = user_client.post("/checkout", data={**ADDRESS, "phone": ""}, follow_redirects=True).get_data(as_text=True)

    assert 'value="Nigeria"' in html
    assert 'value="Lagos"' in html
    assert ">12 Marina</textarea>" in html
    with user_client.session_transaction() as sess:
        assert ADDRESS_KEY not in sess

    # shown once; the next visit falls back to the saved address
    assert 'value="Lagos"' not in user_client.get("/cart").get_data(as_text=True)


def test_checkout_initializes_payment(started, user_client, backend):
    assert started.headers["Location"].endswith("/checkout/ref-1")

    (call,) = backend.called("POST", "/pay/initialize")
    payload = call["json"]
    assert call["token"] == "tok-123"
    assert payload["email"] == "ada@example.com"
    assert payload["amount"] == 21500
    assert payload["orderId"]
    assert payload["cart"] == CART["items"]
    assert payload["deliveryAddress"] == ADDRESS
    assert payload["itemType"] == "bags"
    assert payload["quantity"] == 2


def test_checkout_remembers_address(started, user_client):
    with user_client.session_transaction() as sess:
        assert sess[ADDRESS_KEY]["version"] == 2
        assert sess[ADDRESS_KEY]["phone"] == ADDRESS["phone"]
        assert sess[PAYMENT_KEY]["state"] == "polling"


def test_saved_address_prefills_cart_form(started, user_client, backend):
    html = user_client.get("/cart").get_data(as_text=True)
    assert 'value="Lagos"' in html


def test_payment_page(started, user_client):
    html = user_client.get("/checkout/ref-1").get_data(as_text=True)
    assert "https://pay.test/abc" in html
    assert 'data-interval="4000"' in html


def test_initialize_failure_aborts(user_client, backend):
    backend.on("GET", "/cart/", CART)
    backend.on("POST", "/pay/initialize", BackendError("gateway down", status_code=502))

    r = user_client.post("/checkout", data=ADDRESS, follow_redirects=True)
    assert "Could not start payment" in r.get_data(as_text=True)
    with user_client.session_transaction() as sess:
        assert PAYMENT_KEY not in sess


def test_initialize_without_reference_aborts(user_client, backend):
    backend.on("GET", "/cart/", CART)
    backend.on("POST", "/pay/initialize", {"authorization_url": "https://pay.test/abc"})

    r = user_client.post("/checkout", data=ADDRESS, follow_redirects=True)
    assert "Could not start payment" in r.get_data(as_text=True)


def test_empty_cart_cannot_check_out(user_client, backend):
    backend.on("GET", "/cart/", {"items": []})

    user_client.post("/checkout", data=ADDRESS)
    assert not backend.called("POST", "/pay/initialize")


def test_status_pending_then_success(started, user_client, backend, clock):
    backend.on("GET", "/pay/verify/ref-1", Responses({"status": "pending"}, {"status": "success"}))
    backend.on("DELETE", "/cart/clear", {"ok": True})

    r = user_client.get("/api/checkout/ref-1/status")
    assert r.json["state"] == "polling"
    assert not backend.called("DELETE", "/cart/clear")

    clock.sleep(4)
    r = user_client.get("/api/checkout/ref-1/status")
    assert r.json["state"] == "confirmed"
    assert r.json["redirect"] == "/orders"
    assert len(backend.called("DELETE", "/cart/clear")) == 1

    # further polls do not verify or clear again
    r = user_client.get("/api/checkout/ref-1/status")
    assert r.json["state"] == "confirmed"
    assert len(backend.called("GET", "/pay/verify/ref-1")) == 2
    assert len(backend.called("DELETE", "/cart/clear")) == 1


def test_verify_errors_keep_polling(started, user_client, backend):
    backend.on("GET", "/pay/verify/ref-1", BackendError("timeout"))

    r = user_client.get("/api/checkout/ref-1/status")
    assert r.status_code == 200
    assert r.json["state"] == "polling"


def test_status_abandoned_after_timeout(started, user_client, backend, clock):
    backend.on("GET", "/pay/verify/ref-1", {"status": "pending"})

    clock.sleep(120)
    r = user_client.get("/api/checkout/ref-1/status")
    assert r.json["state"] == "abandoned"
    assert not backend.called("GET", "/pay/verify/ref-1")

    html = user_client.get("/checkout/ref-1").get_data(as_text=True)
    assert 'data-state="abandoned"' in html


def test_popup_blocked(started, user_client, backend):
    r = user_client.post("/api/checkout/ref-1/blocked")
    assert r.json["state"] == "blocked"

    r = user_client.get("/api/checkout/ref-1/status")
    assert r.json["state"] == "blocked"
    assert not backend.called("GET", "/pay/verify/ref-1")

    r = user_client.post("/api/checkout/ref-1/blocked")
    assert r.status_code == 409


def test_unknown_reference(started, user_client):
    r = user_client.get("/api/checkout/other/status")
    assert r.status_code == 404
    assert r.json["error"]["code"] == "not_found"


def test_status_requires_login(client):
    r = client.get("/api/checkout/ref-1/status")
    assert r.status_code == 401
