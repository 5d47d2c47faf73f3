"""Access decisions for protected pages."""

from __future__ import annotations

import enum


class AccessDecision(enum.Enum):
    """What a protected entry point should do with the current caller."""

    WAIT = "wait"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_MEMBER = "redirect_member"
    PENDING_APPROVAL = "pending_approval"
    ALLOW = "allow"


def decide_access(
    *,
    loading: bool,
    authenticated: bool,
    is_admin: bool = False,
    is_approved: bool = False,
    admin_required: bool = False,
    approval_required: bool = False,
) -> AccessDecision:
    """Decide access from the session flags and the page's requirements.

    A caller who is signed in but lacks admin rights goes to the member
    dashboard rather than the login page. An unapproved caller gets the
    pending-approval page in place, never a redirect.
    """
    if loading:
        return AccessDecision.WAIT
    if not authenticated:
        return AccessDecision.REDIRECT_LOGIN
    if admin_required and not is_admin:
        return AccessDecision.REDIRECT_MEMBER
    if approval_required and not is_approved:
        return AccessDecision.PENDING_APPROVAL
    return AccessDecision.ALLOW
