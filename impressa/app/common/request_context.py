import uuid
from flask import g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"


def init_request_id() -> str:
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    g.request_id = rid
    return rid


def current_request_id() -> str | None:
    """Request id of the active request, if any (used to tag backend calls)."""
    if not has_request_context():
        return None
    return getattr(g, "request_id", None)


def echo_request_id(response):
    """Mirror the request id in the response header."""
    rid = current_request_id()
    if rid:
        response.headers[REQUEST_ID_HEADER] = rid
    return response
