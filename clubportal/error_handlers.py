from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_wtf.csrf import CSRFError

from .errors import (
    AccessDenied,
    AppError,
    NotFoundError,
    PendingApprovalError,
    StoreError,
    TransitionIncompleteError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _wants_json():
    return request.path.startswith("/api/") or request.is_json


def _render(message, status_code, template="error.html"):
    if _wants_json():
        return jsonify({"status": "error", "message": message}), status_code
    return render_template(template, error=message), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors by rendering a generic error page."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _render(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _render(error.message, error.status_code, "404.html")


@error_handlers_bp.app_errorhandler(PendingApprovalError)
def handle_pending_approval(error):
    """Show the pending-approval page instead of redirecting."""
    return render_template("pending_approval.html"), error.status_code


@error_handlers_bp.app_errorhandler(AccessDenied)
def handle_access_denied(error):
    current_app.logger.warning(f"Access denied on {request.path}: {error.message}")
    return _render(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(StoreError)
def handle_store_error(error):
    """Handles data store failures without exposing raw details."""
    current_app.logger.error(
        f"Store Error ({error.kind.value}) during {error.action}: {error.detail}"
    )
    if error.is_permission_denied:
        return _render("You are not allowed to do that.", 403)
    return _render(f"{error.message} Please try again later.", error.status_code)


@error_handlers_bp.app_errorhandler(TransitionIncompleteError)
def handle_transition_incomplete(error):
    current_app.logger.error(
        f"Incomplete transition {error.transition}: "
        f"done={error.completed_steps} failed={error.failed_step}"
    )
    return _render(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _render(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    if _wants_json():
        return jsonify({"status": "error", "message": "Not found."}), 404
    return render_template("404.html"), 404


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return render_template("500.html"), 500


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """Handles CSRF errors, usually an expired session or a stale form."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    flash("Your session may have expired. Please try your action again.", "warning")
    return redirect(request.referrer or url_for("main.index"))
