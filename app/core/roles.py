"""
Closed set of access roles and allow-list checks.
"""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    DEVELOPER = "developer"
    PROJECT_MANAGER = "project_manager"


ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})
ADMIN_OR_MANAGER: frozenset[Role] = frozenset({Role.ADMIN, Role.MANAGER})


def role_allowed(role: Role | str, allowed: frozenset[Role]) -> bool:
    """Return True if *role* is a member of the *allowed* set.

    Unknown role strings are never allowed.
    """
    try:
        return Role(role) in allowed
    except ValueError:
        return False
