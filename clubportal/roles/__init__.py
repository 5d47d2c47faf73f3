"""Role assignments, role resolution and the role mutation service."""

from .models import Role, RoleAssignment
from .resolver import ROLE_PRECEDENCE, Capabilities, capabilities, primary_role
from .services import RoleService

__all__ = [
    "ROLE_PRECEDENCE",
    "Capabilities",
    "Role",
    "RoleAssignment",
    "RoleService",
    "capabilities",
    "primary_role",
]
