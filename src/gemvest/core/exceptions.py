"""
Vesting-specific exception hierarchy for Gemvest.

Provides typed exceptions for contract and ledger operations so callers can
tell a rejected precondition apart from a token failure or a broken
deployment, while still catching everything through one base class.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class ContractError(Exception):
    """Base exception for all contract-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


class ContractExecutionError(ContractError):
    """Raised when a contract call reverts.

    Every revert aborts the enclosing operation with no state change.
    """
    pass


# ==================== Token Errors ====================


class TokenError(ContractExecutionError):
    """Raised by the ERC20/ERC721 models (balance, allowance, ownership)."""
    pass


# ==================== Vesting Errors ====================


class VestingError(ContractExecutionError):
    """Base class for vesting ledger reverts."""
    pass


class InvalidIdentifierError(VestingError):
    """Raised when a token id is outside [0, TOTAL_BERAS)."""

    def __init__(self, token_id: Any, **kwargs: Any) -> None:
        super().__init__(f"Invalid token id: {token_id}", details={"token_id": token_id}, **kwargs)
        self.token_id = token_id


class ZeroIdentityError(VestingError):
    """Raised when a required participant is the zero address."""
    pass


class InvalidAddressError(VestingError):
    """Raised when an identity is not a 20-byte hex address."""
    pass


class AlreadyActiveError(VestingError):
    """Raised when staking a token that is already in an accrual period."""
    pass


class NotActiveError(VestingError):
    """Raised when an operation needs an active stake that does not exist."""
    pass


class MismatchedClaimantError(VestingError):
    """Raised when the supplied claimant is not the recorded staker."""
    pass


class UnauthorizedError(VestingError):
    """Raised when the caller lacks the role or ownership an operation needs."""
    pass


class PoolAlreadyInitializedError(VestingError):
    """Raised when the vesting pool is funded a second time."""
    pass


class PoolNotInitializedError(VestingError):
    """Raised when rewards are paid before the pool is funded."""
    pass


class PoolSizeMismatchError(VestingError):
    """Raised at construction when the allocation constants do not add up
    to the declared pool total."""
    pass


class TimestampRangeError(VestingError):
    """Raised when a timestamp falls outside the packed field (1 .. 2**48 - 1)."""
    pass


# ==================== Configuration Errors ====================


class ConfigurationError(ContractError):
    """Raised when required configuration is missing or invalid."""
    pass
