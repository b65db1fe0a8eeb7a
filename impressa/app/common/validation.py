from __future__ import annotations

from flask import request


def form_int(name: str, default: int) -> int:
    raw = (request.form.get(name) or "").strip()
    try:
        return int(raw)
    except ValueError:
        return default


def safe_redirect_target(target: str | None, fallback: str) -> str:
    # only same-site relative paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return fallback
