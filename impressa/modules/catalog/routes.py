from __future__ import annotations

import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for

from impressa.app.common.errors import BackendError
from impressa.app.common.validation import form_int, safe_redirect_target
from impressa.app.extensions import get_backend
from impressa.app.session_store import SessionStore
from impressa.modules.cart.pricing import safe_number
from impressa.modules.catalog.products import (
    CATEGORIES,
    COLORS,
    QUANTITY_CHOICES,
    SORT_OPTIONS,
    Product,
    filter_products,
    sort_products,
)

bp = Blueprint("catalog", __name__)
logger = logging.getLogger(__name__)

FEATURED_COUNT = 4


def _load_products() -> list[Product]:
    try:
        payload = get_backend().list_templates()
    except BackendError as e:
        logger.error("Error fetching products: %s", e)
        flash("We couldn't load products right now.", "error")
        return []
    return [Product.from_payload(p) for p in payload if isinstance(p, dict)]


@bp.get("/")
def home():
    featured = _load_products()[:FEATURED_COUNT]
    return render_template("pages/home.html", featured=featured)


@bp.get("/products")
def list_products():
    category = (request.args.get("category") or "all").strip().lower()
    colors = [c.strip().lower() for c in request.args.getlist("color") if c.strip()]
    customizable = request.args.get("customizable") in ("1", "true", "on")
    sort = (request.args.get("sort") or "featured").strip()

    products = sort_products(
        filter_products(_load_products(), category=category, colors=colors, customizable_only=customizable),
        sort,
    )
    return render_template(
        "pages/products.html",
        products=products,
        categories=CATEGORIES,
        all_colors=COLORS,
        sort_options=SORT_OPTIONS,
        category=category,
        colors=colors,
        customizable=customizable,
        sort=sort,
    )


@bp.get("/custom")
def custom_design():
    return render_template("pages/custom.html")


@bp.get("/products/<product_id>")
def product_detail(product_id: str):
    try:
        product = Product.from_payload(get_backend().get_template(product_id))
    except BackendError as e:
        logger.info("Product %s unavailable: %s", product_id, e)
        return render_template("pages/product_detail.html", product=None, error="Product not found."), 404

    return render_template(
        "pages/product_detail.html",
        product=product,
        quantity_choices=QUANTITY_CHOICES,
        error=None,
    )


@bp.post("/products/<product_id>/add-to-cart")
def add_to_cart(product_id: str):
    store = SessionStore()
    back = safe_redirect_target(
        request.form.get("back"), url_for("catalog.product_detail", product_id=product_id)
    )
    if not store.is_authenticated:
        return redirect(url_for("auth.login", next=back))

    quantity = max(form_int("quantity", 1), 1)
    options = {
        k: v for k, v in (
            ("color", (request.form.get("color") or "").strip()),
            ("size", (request.form.get("size") or "").strip()),
        ) if v
    }

    try:
        get_backend().add_to_cart(
            store.token,
            template_id=product_id,
            design_id=request.form.get("design_id") or None,
            item_type=(request.form.get("item_type") or "product").strip(),
            quantity=quantity,
            price=safe_number(request.form.get("price")),
            options=options or None,
        )
    except BackendError as e:
        if e.is_unauthorized:
            raise
        logger.error("Add to cart failed: %s", e)
        flash("Failed to add to cart", "error")
        return redirect(back)

    flash("Added to cart", "success")
    return redirect(back)
