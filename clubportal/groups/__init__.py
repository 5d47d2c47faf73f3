"""Groups of approved members."""

from .models import Group, GroupMembership
from .services import GroupService

__all__ = ["Group", "GroupMembership", "GroupService"]
