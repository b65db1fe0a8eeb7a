import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from impressa.app.backend import BackendClient
from impressa.app.config import TestConfig
from impressa.app.factory import create_app
from impressa.app.session_store import TOKEN_KEY, USER_KEY


class Responses:
    """Answers a route with each item in turn; the last one repeats."""

    def __init__(self, *items):
        self.items = list(items)

    def next(self):
        if len(self.items) > 1:
            return self.items.pop(0)
        return self.items[0]


class FakeBackend(BackendClient):
    """BackendClient whose transport answers from canned responses."""

    def __init__(self):
        super().__init__(base_url=TestConfig.API_BASE_URL, session=MagicMock())
        self.routes = {}
        self.calls = []

    def on(self, method, path, response):
        self.routes[(method, path)] = response

    def _request(self, method, path, token=None, **kwargs):
        self.calls.append({"method": method, "path": path, "token": token, "json": kwargs.get("json")})
        response = self.routes.get((method, path))
        if isinstance(response, Responses):
            response = response.next()
        if isinstance(response, Exception):
            raise response
        return response

    def called(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def app(backend, clock):
    app = create_app(TestConfig, backend=backend)
    app.config["PAYMENT_CLOCK"] = clock
    return app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def user_client(client):
    """Test client with a signed-in user."""
    with client.session_transaction() as sess:
        sess[TOKEN_KEY] = "tok-123"
        sess[USER_KEY] = {"username": "ada", "email": "ada@example.com", "role": "customer"}
    return client
