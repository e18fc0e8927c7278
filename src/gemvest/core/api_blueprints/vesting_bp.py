"""
Vesting API Blueprint

Read-only endpoints over a running vesting ledger: constants, pending
rewards (single and batch) and raw per-token records.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, request
from pydantic import BaseModel, Field, StrictInt
from pydantic import ValidationError as PydanticValidationError

from gemvest import __version__
from gemvest.core.api_blueprints.base import (
    amount_str,
    error_response,
    get_ledger,
    get_max_batch_size,
    success_response,
)
from gemvest.core.constants import (
    SECONDS_PER_DAY,
    TOTAL_BERAS,
    VESTING_PERIOD_IN_DAYS,
)
from gemvest.core.exceptions import ContractError, InvalidIdentifierError

logger = logging.getLogger(__name__)

vesting_bp = Blueprint("vesting", __name__)


class PendingBatchInput(BaseModel):
    token_ids: list[StrictInt] = Field(min_length=1)


@vesting_bp.route("/health", methods=["GET"])
def health_check() -> Tuple[Any, int]:
    """Health check endpoint for Docker and monitoring."""
    ledger = get_ledger()
    if ledger is None:
        return error_response(
            "Ledger not configured",
            status=503,
            code="ledger_unavailable",
            event_type="api.health_degraded",
        )
    return success_response(
        {
            "status": "healthy",
            "version": __version__,
            "pool_initialized": ledger.is_pool_initialized(),
        }
    )


@vesting_bp.route("/vesting/constants", methods=["GET"])
def vesting_constants() -> Tuple[Any, int]:
    """Schedule figures the ledger was deployed with."""
    ledger = get_ledger()
    engine = ledger.engine
    return success_response(
        {
            "total_beras": TOTAL_BERAS,
            "vesting_period_in_days": VESTING_PERIOD_IN_DAYS,
            "seconds_per_day": SECONDS_PER_DAY,
            "base_bera_initial_unlock": amount_str(engine.initial_unlock_per_unit),
            "base_bera_daily_unlock": amount_str(engine.daily_unlock_per_unit),
            "unique_bera_alloc_ratio": engine.unique_ratio,
            "unique_bera_ids": sorted(engine.unique_ids),
            "vesting_pool_total": amount_str(ledger.pool_total),
        }
    )


@vesting_bp.route("/vesting/pending/<int:token_id>", methods=["GET"])
def pending_rewards(token_id: int) -> Tuple[Any, int]:
    """Pending rewards for a single token id."""
    ledger = get_ledger()
    try:
        pending = ledger.pending_rewards(token_id)
    except InvalidIdentifierError as exc:
        return error_response(
            exc.message,
            status=404,
            code="invalid_token_id",
            context={"token_id": token_id},
        )
    return success_response({"token_id": token_id, "pending": amount_str(pending)})


@vesting_bp.route("/vesting/pending/batch", methods=["POST"])
def pending_rewards_batch() -> Tuple[Any, int]:
    """Pending rewards for a list of token ids, with their sum."""
    ledger = get_ledger()
    payload = request.get_json(silent=True) or {}
    try:
        model = PendingBatchInput.model_validate(payload)
    except PydanticValidationError as exc:
        logger.warning(
            "PydanticValidationError in pending_rewards_batch",
            extra={
                "event": "api.invalid_payload",
                "error_type": "PydanticValidationError",
                "error": str(exc),
                "function": "pending_rewards_batch",
            },
        )
        return error_response(
            "Invalid batch request",
            status=400,
            code="invalid_payload",
        )

    max_batch = get_max_batch_size()
    if max_batch and len(model.token_ids) > max_batch:
        return error_response(
            f"Batch cannot exceed {max_batch} token ids",
            status=400,
            code="batch_too_large",
            context={"requested": len(model.token_ids)},
        )

    try:
        amounts = ledger.pending_rewards_batch(model.token_ids)
    except InvalidIdentifierError as exc:
        return error_response(
            exc.message,
            status=400,
            code="invalid_token_id",
            context={"token_id": exc.token_id},
        )

    return success_response(
        {
            "token_ids": model.token_ids,
            "pending": [amount_str(a) for a in amounts],
            "total": amount_str(sum(amounts)),
        }
    )


@vesting_bp.route("/vesting/state/<int:token_id>", methods=["GET"])
def vesting_state(token_id: int) -> Tuple[Any, int]:
    """Raw vesting record for a token id."""
    ledger = get_ledger()
    try:
        record = ledger.vesting_state(token_id)
        multiplier = ledger.allocation_multiplier(token_id)
    except InvalidIdentifierError as exc:
        return error_response(
            exc.message,
            status=404,
            code="invalid_token_id",
            context={"token_id": token_id},
        )

    state: Dict[str, Any] = record.to_dict()
    state["active"] = record.is_active
    state["allocation_multiplier"] = multiplier
    return success_response({"token_id": token_id, "state": state})


@vesting_bp.errorhandler(ContractError)
def handle_contract_error(error: ContractError) -> Tuple[Any, int]:
    return error_response(
        error.message,
        status=409,
        code="contract_error",
        context={"error_type": type(error).__name__},
    )
