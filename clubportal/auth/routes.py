from urllib.parse import urlparse

from flask import (
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from clubportal.admin.services import AdminService
from clubportal.errors import (
    AppError,
    InvalidCredentialsError,
    PendingApprovalError,
    StoreError,
)
from clubportal.roles.models import Role
from clubportal.roles.services import RoleService
from clubportal.store import get_db
from clubportal.utils import EmailError

from . import bp
from .decorators import login_required
from .forms import (
    InstallForm,
    LoginForm,
    ResetPasswordForm,
    UpdatePasswordForm,
)


def _landing_page():
    ctx = g.session_ctx
    if ctx.is_admin:
        return url_for("admin.dashboard")
    return url_for("member.dashboard")


def _safe_next(target):
    """Only follow local redirects."""
    if not target or not target.startswith("/"):
        return None
    # Browsers read a backslash as a slash and drop tabs and newlines.
    if "\\" in target or any(ord(c) < 32 for c in target):
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc:
        return None
    return target


def _needs_install(db):
    try:
        return RoleService.count_admins(db) == 0
    except StoreError as e:
        current_app.logger.error(f"Could not check for an admin account: {e.message}")
        return False


@bp.route("/login", methods=["GET", "POST"])
def login():
    """Sign in with email and password."""
    db = get_db()
    if _needs_install(db):
        return redirect(url_for(".install"))

    ctx = g.session_ctx
    if ctx.is_authenticated and ctx.is_approved:
        return redirect(_landing_page())

    form = LoginForm()
    if form.validate_on_submit():
        try:
            ctx.sign_in(form.email.data, form.password.data)
        except PendingApprovalError as e:
            flash(e.message, "warning")
            return redirect(url_for(".login"))
        except InvalidCredentialsError as e:
            current_app.logger.warning(f"Failed sign-in for {form.email.data}")
            flash(e.message, "danger")
            return redirect(url_for(".login"))
        except AppError as e:
            flash(e.message, "danger")
            return redirect(url_for(".login"))

        current_app.logger.info(f"User {ctx.user.uid} signed in")
        flash("Welcome back!", "success")
        return redirect(_safe_next(request.args.get("next")) or _landing_page())

    return render_template("auth/login.html", form=form)


@bp.route("/signup")
def signup():
    """Accounts are created together with an application."""
    return redirect(url_for("main.apply"))


@bp.route("/logout")
def logout():
    """End the session."""
    g.session_ctx.sign_out()
    session.clear()
    flash("You have been logged out.", "success")
    return redirect(url_for("main.index"))


@bp.route("/reset_password", methods=["GET", "POST"])
def reset_password():
    """Send a password reset link."""
    form = ResetPasswordForm()
    if form.validate_on_submit():
        redirect_url = current_app.config.get(
            "PASSWORD_RESET_REDIRECT_URL"
        ) or url_for(".login", _external=True)
        try:
            g.session_ctx.identity.reset_password_for_email(
                form.email.data, redirect_url
            )
        except EmailError as e:
            current_app.logger.error(f"Password reset email failed: {e}")
            flash("Failed to send the reset email. Please try again.", "danger")
            return redirect(url_for(".reset_password"))

        flash(
            "If an account exists for that address, a reset link is on its way.",
            "info",
        )
        return redirect(url_for(".login"))

    return render_template("auth/reset_password.html", form=form)


@bp.route("/update_password", methods=["GET", "POST"])
@login_required
def update_password():
    """Change the signed-in user's password."""
    form = UpdatePasswordForm()
    if form.validate_on_submit():
        try:
            g.session_ctx.identity.update_user(form.password.data)
        except AppError as e:
            flash(e.message, "danger")
            return redirect(url_for(".update_password"))

        flash("Your password has been updated.", "success")
        return redirect(_landing_page())

    return render_template("auth/update_password.html", form=form)


@bp.route("/install", methods=["GET", "POST"])
def install():
    """Create the first admin account when none exists."""
    db = get_db()
    if not _needs_install(db):
        return redirect(url_for(".login"))

    form = InstallForm()
    if form.validate_on_submit():
        try:
            AdminService.create_account(
                db,
                g.session_ctx.identity,
                name=form.name.data,
                email=form.email.data,
                password=form.password.data,
                role=Role.ADMIN,
            )
        except AppError as e:
            flash(e.message, "danger")
            return redirect(url_for(".install"))

        flash("Admin user created successfully. You can now log in.", "success")
        return redirect(url_for(".login"))

    return render_template("auth/install.html", form=form)
