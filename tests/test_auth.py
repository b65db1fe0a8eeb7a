from impressa.app.common.errors import BackendError
from impressa.app.session_store import TOKEN_KEY, SessionStore, auth_changed


def test_login_stores_token_and_user(client, backend):
    backend.on("POST", "/auth/login", {"token": "t-1", "user": {"username": "ada", "email": "ada@example.com"}})

    r = client.post("/login", data={"email": "ADA@example.com ", "password": "pw"})

    assert r.status_code == 302
    assert r.headers["Location"].endswith("/products")
    assert backend.called("POST", "/auth/login")[0]["json"] == {"email": "ada@example.com", "password": "pw"}
    state = client.get("/api/session").json
    assert state == {"authenticated": True, "user": {"username": "ada", "email": "ada@example.com"}, "version": 1}


def test_login_redirects_to_next(client, backend):
    backend.on("POST", "/auth/login", {"token": "t-1", "user": {}})

    r = client.post("/login", data={"email": "a@b.co", "password": "pw", "next": "/cart"})
    assert r.headers["Location"].endswith("/cart")


def test_login_ignores_offsite_next(client, backend):
    backend.on("POST", "/auth/login", {"token": "t-1", "user": {}})

    r = client.post("/login", data={"email": "a@b.co", "password": "pw", "next": "//evil.test/"})
    assert r.headers["Location"].endswith("/products")


def test_login_failure_shows_backend_message(client, backend):
    backend.on("POST", "/auth/login", BackendError("Invalid credentials", status_code=400))

    r = client.post("/login", data={"email": "a@b.co", "password": "bad"}, follow_redirects=True)
    assert "Invalid credentials" in r.get_data(as_text=True)
    assert client.get("/api/session").json["authenticated"] is False


def test_login_transport_failure_is_generic(client, backend):
    backend.on("POST", "/auth/login", BackendError("Could not reach the store service"))

    r = client.post("/login", data={"email": "a@b.co", "password": "pw"}, follow_redirects=True)
    assert "Login failed. Try again." in r.get_data(as_text=True)


def test_login_requires_fields(client, backend):
    client.post("/login", data={"email": "", "password": ""})
    assert backend.calls == []


def test_register_then_login(client, backend):
    backend.on("POST", "/auth/register", {"message": "ok"})

    r = client.post("/register", data={"username": "ada", "email": "ada@example.com", "password": "pw"})
    assert r.headers["Location"].endswith("/login")
    assert backend.called("POST", "/auth/register")[0]["json"]["username"] == "ada"


def test_register_shows_backend_error(client, backend):
    backend.on("POST", "/auth/register", BackendError("Email taken", payload={"error": "Email taken"}))

    r = client.post("/register", data={"username": "ada", "email": "ada@example.com", "password": "pw"}, follow_redirects=True)
    assert "Email taken" in r.get_data(as_text=True)


def test_register_rejects_bad_email(client, backend):
    client.post("/register", data={"username": "ada", "email": "nope", "password": "pw"})
    assert backend.calls == []


def test_logout_clears_session_and_bumps_version(user_client):
    before = user_client.get("/api/session").json
    assert before["authenticated"] is True

    r = user_client.post("/logout")
    assert r.headers["Location"].endswith("/products")

    after = user_client.get("/api/session").json
    assert after["authenticated"] is False
    assert after["version"] == before["version"] + 1


def test_auth_changed_signal():
    received = []

    def listener(sender, **kw):
        received.append(kw)

    storage = {}
    store = SessionStore(storage)
    with auth_changed.connected_to(listener):
        store.sign_in("t", {"username": "ada"})
        store.sign_out()

    assert received == [{"user": {"username": "ada"}, "version": 1}, {"user": None, "version": 2}]
    assert TOKEN_KEY not in storage


def test_legacy_phone_is_folded_into_address():
    store = SessionStore({"impressa_address": "12 Marina", "impressa_phone": "0800"})
    address = store.delivery_address
    assert address.address == "12 Marina"
    assert address.phone == "0800"

    store.save_delivery_address(address)
    assert "impressa_phone" not in store.storage
    assert store.storage["impressa_address"]["version"] == 2
