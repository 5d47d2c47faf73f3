"""Decorators for protected views."""

from functools import wraps

from flask import flash, g, redirect, render_template, request, url_for

from .gate import AccessDecision, decide_access


def login_required(f=None, admin_required=False, approval_required=False):
    """Gate a view on the current session.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(approval_required=True)
    def member_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            ctx = g.session_ctx
            decision = decide_access(
                loading=ctx.loading,
                authenticated=ctx.is_authenticated,
                is_admin=ctx.is_admin,
                is_approved=ctx.is_approved,
                admin_required=admin_required,
                approval_required=approval_required,
            )
            if decision is AccessDecision.WAIT:
                return render_template("loading.html"), 503
            if decision is AccessDecision.REDIRECT_LOGIN:
                return redirect(url_for("auth.login", next=request.path))
            if decision is AccessDecision.REDIRECT_MEMBER:
                flash("You are not authorized to view this page.", "danger")
                return redirect(url_for("member.dashboard"))
            if decision is AccessDecision.PENDING_APPROVAL:
                return render_template("pending_approval.html"), 403
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
