"""The public site blueprint."""

from flask import Blueprint

bp = Blueprint("main", __name__)

from . import routes  # noqa: E402

__all__ = ["routes"]
