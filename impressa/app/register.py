from flask import Flask

from impressa.modules.auth.routes import bp as auth_bp
from impressa.modules.catalog.routes import bp as catalog_bp
from impressa.modules.cart.routes import bp as cart_bp
from impressa.modules.checkout.routes import bp as checkout_bp
from impressa.modules.orders.routes import bp as orders_bp


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(orders_bp)

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": "Impressa Storefront API",
            "version": "0.1.0",
            "endpoints": {
                "session": ["/api/session"],
                "checkout": ["/api/checkout/<reference>/status", "/api/checkout/<reference>/blocked"],
            },
        }, 200
