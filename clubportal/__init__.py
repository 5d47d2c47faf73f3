"""Initialize the Flask app and its extensions."""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask, g, jsonify, session
from google.auth.exceptions import DefaultCredentialsError
from werkzeug.middleware.proxy_fix import ProxyFix

from .core import constants
from .extensions import csrf, mail
from .utils import parse_bool


def default_identity_provider_factory(app, storage):
    """Build the Firebase identity provider for one request."""
    from .auth.identity import FirebaseIdentityProvider

    return FirebaseIdentityProvider.from_app(app, storage)


def _init_firebase(app):
    cred = None
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    # Production: credentials passed as JSON in the environment.
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except ValueError as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # Local development: a credentials file next to the package.
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    project_id = json.load(f).get("project_id") or project_id
                cred = credentials.Certificate(cred_path)
            except ValueError as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    if not cred:
        try:
            cred = credentials.ApplicationDefault()
        except DefaultCredentialsError as e:
            app.logger.error(f"Could not find any valid Firebase credentials: {e}")
            return

    if firebase_admin._apps:
        app.logger.info("Firebase app already initialized.")
        return
    options = {"projectId": project_id} if project_id else None
    firebase_admin.initialize_app(cred, options)


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, static_folder="static", static_url_path="/static")

    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIREBASE_API_KEY=os.environ.get("FIREBASE_API_KEY"),
        MAIL_SERVER=os.environ.get("MAIL_SERVER") or "smtp.gmail.com",
        MAIL_PORT=int(os.environ.get("MAIL_PORT") or 587),
        MAIL_USE_TLS=parse_bool(os.environ.get("MAIL_USE_TLS"), default=True),
        MAIL_USE_SSL=parse_bool(os.environ.get("MAIL_USE_SSL")),
        MAIL_USERNAME=os.environ.get("MAIL_USERNAME"),
        MAIL_PASSWORD=os.environ.get("MAIL_PASSWORD"),
        MAIL_DEFAULT_SENDER=os.environ.get("MAIL_DEFAULT_SENDER")
        or "noreply@clubportal.local",
        LOG_LEVEL=os.environ.get("LOG_LEVEL") or "INFO",
        CHAT_POLL_INTERVAL_MS=int(
            os.environ.get("CHAT_POLL_INTERVAL_MS") or constants.CHAT_POLL_INTERVAL_MS
        ),
        GRANT_ROLE_ON_SUBMISSION=parse_bool(
            os.environ.get("GRANT_ROLE_ON_SUBMISSION")
        ),
        PASSWORD_RESET_REDIRECT_URL=os.environ.get("PASSWORD_RESET_REDIRECT_URL"),
        IDENTITY_REQUEST_TIMEOUT=(
            float(os.environ["IDENTITY_REQUEST_TIMEOUT"])
            if os.environ.get("IDENTITY_REQUEST_TIMEOUT")
            else None
        ),
        IDENTITY_PROVIDER_FACTORY=default_identity_provider_factory,
    )

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    logging.getLogger(__name__).setLevel(app.config["LOG_LEVEL"])

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    mail.init_app(app)
    csrf.init_app(app)

    from . import main as main_bp

    app.register_blueprint(main_bp.bp)

    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import member as member_bp

    app.register_blueprint(member_bp.bp)

    from . import admin as admin_bp

    app.register_blueprint(admin_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    from .context_processors import inject_global_context, inject_session_context

    app.context_processor(inject_global_context)
    app.context_processor(inject_session_context)

    from .seed import seed_demo_command

    app.cli.add_command(seed_demo_command)

    @app.before_request
    def load_session_context():
        """Build the session context for this request and load the user."""
        from .auth.session import SessionContext
        from .store import get_db

        identity = app.config["IDENTITY_PROVIDER_FACTORY"](app, session)
        g.session_ctx = SessionContext(identity, get_db())
        g.session_ctx.init()

    @app.teardown_request
    def teardown_session_context(exc):
        ctx = g.pop("session_ctx", None)
        if ctx is not None:
            ctx.teardown()

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
