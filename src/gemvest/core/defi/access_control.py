"""
Role-Based Access Control for the vesting contracts.

Every privileged entry point receives the caller's address explicitly and
checks it against a role-membership table. There is no ambient "current
sender": callers are opaque identities handed in by whoever executes the
operation.

Roles:
- ADMIN: funds the vesting pool, grants roles, manages staking listeners
- STAKER: the custody contract that reports stake/unstake transitions
"""

from __future__ import annotations

import time
import logging
from dataclasses import dataclass, field
from typing import Dict, Set
from enum import Enum

from ..exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class Role(Enum):
    """Roles recognised by the vesting contracts."""
    ADMIN = "admin"
    STAKER = "staker"


@dataclass
class RoleBasedAccessControl:
    """
    Role table keyed by role name.

    ``admin_address`` starts out as ADMIN. Only ADMIN members may grant or
    revoke, and each change is appended to ``role_changes``.
    """

    roles: Dict[str, Set[str]] = field(default_factory=dict)
    admin_address: str = ""
    role_changes: list = field(default_factory=list)

    def __post_init__(self) -> None:
        for role in Role:
            self.roles.setdefault(role.value, set())
        if self.admin_address:
            self.roles[Role.ADMIN.value].add(self.admin_address.lower())

    def grant_role(self, caller: str, role: str, address: str) -> bool:
        """
        Add ``address`` to ``role``.

        Raises:
            UnauthorizedError: If caller is not ADMIN
        """
        self.require_role(Role.ADMIN.value, caller)
        self.roles.setdefault(role, set()).add(address.lower())
        self._record("grant", caller, role, address)
        return True

    def revoke_role(self, caller: str, role: str, address: str) -> bool:
        """Remove ``address`` from ``role``; ADMIN only."""
        self.require_role(Role.ADMIN.value, caller)
        self.roles.get(role, set()).discard(address.lower())
        self._record("revoke", caller, role, address)
        return True

    def has_role(self, role: str, address: str) -> bool:
        return address.lower() in self.roles.get(role, set())

    def require_role(self, role: str, caller: str) -> None:
        """
        Raise unless ``caller`` holds ``role``.

        Raises:
            UnauthorizedError: If the role is not assigned
        """
        if self.has_role(role, caller):
            return
        logger.warning(
            "Access denied: role not assigned",
            extra={
                "event": "rbac.role_not_assigned",
                "address": caller.lower()[:10],
                "required_role": role,
            }
        )
        raise UnauthorizedError(
            f"{caller.lower()} is missing role '{role}'",
            details={"account": caller.lower(), "role": role},
        )

    def _record(self, action: str, caller: str, role: str, address: str) -> None:
        self.role_changes.append({
            "action": action,
            "role": role,
            "address": address.lower(),
            "admin": caller.lower(),
            "timestamp": time.time(),
        })
        logger.info(
            f"Role {action}",
            extra={
                "event": f"rbac.role_{action}",
                "role": role,
                "address": address.lower()[:10],
                "admin": caller.lower()[:10],
            }
        )


def requires_role(role: str):
    """
    Decorator for contract methods whose first argument is the caller.

    The decorated object must expose its table as ``self.access_control``.

    Usage:
        @requires_role(Role.ADMIN.value)
        def initialize_vesting_pool(self, caller: str) -> None:
            ...
    """
    def decorator(func):
        def wrapper(self, caller: str, *args, **kwargs):
            self.access_control.require_role(role, caller)
            return func(self, caller, *args, **kwargs)
        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator
