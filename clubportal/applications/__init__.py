"""Membership applications."""

from .models import ApplicationSubmission, ApplicationUpdate, ApplicationView
from .services import ApplicationService

__all__ = [
    "ApplicationService",
    "ApplicationSubmission",
    "ApplicationUpdate",
    "ApplicationView",
]
