"""Derive display roles and capability flags from role assignments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .models import Role

# Highest first.
ROLE_PRECEDENCE: tuple[Role, ...] = (
    Role.FOUNDER,
    Role.ADMIN,
    Role.EXECUTIVE,
    Role.MEMBER,
)


@dataclass(frozen=True)
class Capabilities:
    """Access flags used by the gate; independent of the display role."""

    is_approved: bool
    is_admin: bool


def _as_roles(roles: Iterable[Role | str]) -> list[Role]:
    return [r if isinstance(r, Role) else Role.parse(r) for r in roles]


def primary_role(roles: Iterable[Role | str]) -> Role:
    """Return the highest-precedence role, falling back to member.

    The fallback is for display grouping only; an empty role set is still
    not approved.
    """
    held = set(_as_roles(roles))
    for role in ROLE_PRECEDENCE:
        if role in held:
            return role
    return Role.MEMBER


def capabilities(roles: Iterable[Role | str]) -> Capabilities:
    """Return the capability flags for a user's role set."""
    held = _as_roles(roles)
    return Capabilities(is_approved=len(held) > 0, is_admin=Role.ADMIN in held)
