"""Member profiles."""

from .models import ApplicationStatus, Profile
from .services import ProfileService

__all__ = ["ApplicationStatus", "Profile", "ProfileService"]
