"""
Gemvest Core Module

Core functionality for the vesting ledger including:
- Constants, configuration and logging setup
- Exception hierarchy
- Token contract models
- Vesting ledger, accrual engine and custody mechanism
- HTTP API blueprints
"""

__all__ = []
