"""
Gemvest API Blueprints

Flask Blueprints exposing the vesting ledger over HTTP.

Usage:
    from gemvest.core.api_blueprints import create_app
    app = create_app(ledger)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, g

from gemvest.core.api_blueprints.vesting_bp import vesting_bp

__all__ = [
    "vesting_bp",
    "register_blueprints",
    "create_app",
    "ALL_BLUEPRINTS",
]

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = [
    vesting_bp,
]


def register_blueprints(app: Flask, ledger: Any, max_batch_size: int = 0) -> None:
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
        ledger: VestingLedger instance served by the API
        max_batch_size: Upper bound on batch query size (0 = unbounded)
    """
    api_context = {
        "ledger": ledger,
        "max_batch_size": max_batch_size,
    }

    @app.before_request
    def inject_api_context() -> None:
        """Inject API context into Flask's g object for blueprint access."""
        g.api_context = api_context

    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)


def create_app(ledger: Any, max_batch_size: Optional[int] = None) -> Flask:
    """Build a Flask app serving ``ledger``."""
    if max_batch_size is None:
        from gemvest.core.config import Config

        max_batch_size = Config.API_MAX_BATCH_SIZE

    app = Flask(__name__)
    register_blueprints(app, ledger, max_batch_size=max_batch_size)

    logger.info(
        "API app created",
        extra={
            "event": "api.app_created",
            "ledger": getattr(ledger, "address", "")[:10],
            "max_batch_size": max_batch_size,
        },
    )
    return app
