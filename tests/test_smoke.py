def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["status"] == "ok"


def test_api_index(client):
    r = client.get("/api")
    assert r.status_code == 200
    assert "endpoints" in r.json


def test_unknown_api_route_is_json(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json["error"]["code"] == "http_error"
    assert r.json["error"]["request_id"]


def test_request_id_is_echoed_in_errors(client):
    r = client.get("/api/nope", headers={"X-Request-ID": "rid-42"})
    assert r.json["error"]["request_id"] == "rid-42"


def test_unknown_page_renders_html(client):
    r = client.get("/nowhere")
    assert r.status_code == 404
    assert r.mimetype == "text/html"


def test_request_id_header_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "rid-9"})
    assert r.headers["X-Request-ID"] == "rid-9"


def test_request_id_header_is_generated(client):
    assert client.get("/health").headers["X-Request-ID"]
