"""Service layer for the public team page."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Optional, TypedDict

from clubportal.profiles.models import Profile
from clubportal.profiles.services import ProfileService
from clubportal.roles.models import Role
from clubportal.roles.resolver import primary_role
from clubportal.roles.services import RoleService


class TeamSections(TypedDict):
    """Team page layout."""

    founder: Optional[Profile]
    executives: list[Profile]
    members: list[Profile]


class TeamService:
    """Service class for the team page."""

    @staticmethod
    def team_sections(db: Any) -> TeamSections:
        """Group approved profiles by primary role.

        Admins are listed with the members. Profiles without a role are left out.
        """
        roles_by_user: dict[str, list[Role]] = defaultdict(list)
        for assignment in RoleService.list_assignments(db):
            roles_by_user[assignment.user_id].append(assignment.role)

        sections: TeamSections = {"founder": None, "executives": [], "members": []}
        for profile in ProfileService.list_profiles(db):
            roles = roles_by_user.get(profile.id)
            if not roles:
                continue
            role = primary_role(roles)
            if role is Role.FOUNDER and sections["founder"] is None:
                sections["founder"] = profile
            elif role is Role.EXECUTIVE:
                sections["executives"].append(profile)
            else:
                sections["members"].append(profile)
        return sections
