"""
access.py - Authorization and compliance collaborators

Concrete implementations of the Authorizer and ComplianceOracle protocols.
The treasury only ever talks to the protocols, so any role model or
compliance provider can be plugged in.

Classes:
- RoleAuthorizer: Owner plus per-action grants
- StaticComplianceOracle: In-memory frozen-account set
"""

from __future__ import annotations
from typing import Dict, Iterable, Optional, Set

from .core import ALL_ACTIONS, require_account


class RoleAuthorizer:
    """
    Single-owner authorizer with optional per-action grants.

    The owner may perform every action. Other callers may perform only the
    actions explicitly granted to them.

    Example:
        auth = RoleAuthorizer("owner", {"mint": {"router_bot"}})
        auth.is_authorized("owner", "invest")        # True
        auth.is_authorized("router_bot", "mint")     # True
        auth.is_authorized("router_bot", "invest")   # False
    """

    def __init__(self, owner: str, grants: Optional[Dict[str, Iterable[str]]] = None):
        self.owner = require_account(owner)
        self.grants: Dict[str, Set[str]] = {}
        for action, callers in (grants or {}).items():
            for caller in callers:
                self.grant(action, caller)

    def is_authorized(self, caller: str, action: str) -> bool:
        if caller == self.owner:
            return True
        return caller in self.grants.get(action, set())

    def grant(self, action: str, caller: str) -> None:
        if action not in ALL_ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        self.grants.setdefault(action, set()).add(require_account(caller))

    def revoke(self, action: str, caller: str) -> None:
        self.grants.get(action, set()).discard(caller)

    def __repr__(self):
        return f"RoleAuthorizer(owner={self.owner}, {sum(len(v) for v in self.grants.values())} grants)"


class StaticComplianceOracle:
    """Compliance oracle backed by an in-memory set of frozen accounts."""

    def __init__(self, frozen: Optional[Iterable[str]] = None):
        self.frozen: Set[str] = set(frozen or ())

    def is_frozen(self, account: str) -> bool:
        return account in self.frozen

    def freeze(self, account: str) -> None:
        self.frozen.add(account)

    def unfreeze(self, account: str) -> None:
        self.frozen.discard(account)

    def __repr__(self):
        return f"StaticComplianceOracle({len(self.frozen)} frozen)"
