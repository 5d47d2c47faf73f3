"""Competition robots and team signups."""

from .models import Robot, Signup
from .services import CompetitionService

__all__ = ["CompetitionService", "Robot", "Signup"]
