from __future__ import annotations

from typing import Iterable

ROLES = ("admin", "manager", "accountant", "user")

PERMISSIONS = (
    "view_dashboard",
    "manage_users",
    "manage_transactions",
    "manage_settings",
    "export_data",
    "view_reports",
)

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset(PERMISSIONS),
    "manager": frozenset(
        {"view_dashboard", "manage_transactions", "view_reports", "export_data"}
    ),
    "accountant": frozenset({"view_dashboard", "manage_transactions", "view_reports"}),
    "user": frozenset({"view_dashboard", "view_reports"}),
}

# Highest first; used when a user carries several role rows
ROLE_PRECEDENCE = {name: i for i, name in enumerate(ROLES)}


def is_valid_role(role: str | None) -> bool:
    return role in ROLE_PERMISSIONS


def has_permission(role: str | None, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role or "", frozenset())


def validate_multiple_permissions(role: str | None, permissions: Iterable[str]) -> bool:
    """True only if ``role`` grants every permission listed."""
    return all(has_permission(role, p) for p in permissions)


def permissions_for(role: str | None) -> list[str]:
    granted = ROLE_PERMISSIONS.get(role or "", frozenset())
    return [p for p in PERMISSIONS if p in granted]


def effective_role(role_names: Iterable[str]) -> str | None:
    known = [r for r in role_names if r in ROLE_PRECEDENCE]
    if not known:
        return None
    return min(known, key=ROLE_PRECEDENCE.__getitem__)
