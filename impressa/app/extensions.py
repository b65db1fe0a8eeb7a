from flask_cors import CORS

from impressa.app.backend import BackendClient

# Singletons (initialized in app factory)
backend = BackendClient()
cors = CORS()


def get_backend() -> BackendClient:
    from flask import current_app

    return current_app.extensions["impressa_backend"]
