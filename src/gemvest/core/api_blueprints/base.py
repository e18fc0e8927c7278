"""
Base utilities for API Blueprints

Provides common dependencies and helper functions shared across blueprints.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import g, jsonify

logger = logging.getLogger(__name__)


def get_api_context() -> Dict[str, Any]:
    """Get the API context containing the ledger and its collaborators.

    The context is stored in Flask's g object during request setup.
    """
    return g.get("api_context", {})


def get_ledger() -> Any:
    """Get the vesting ledger instance from context."""
    ctx = get_api_context()
    return ctx.get("ledger")


def get_max_batch_size() -> int:
    ctx = get_api_context()
    return int(ctx.get("max_batch_size", 0))


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
    event_type: str = "api.error",
) -> Tuple[Any, int]:
    """Return an error response and log it with its context."""
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        message,
        extra={"event": event_type, "code": code, "status": status, **(context or {})},
    )
    return jsonify({"success": False, "error": message, "code": code}), status


def amount_str(amount: int) -> str:
    """Token amounts exceed JSON's safe integer range; send them as strings."""
    return str(amount)
