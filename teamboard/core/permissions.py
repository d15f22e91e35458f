# teamboard/core/permissions.py
"""
Authorization guard for teams and tasks.

Every function here is a pure decision over entities that are already
loaded; callers report a missing team or task before asking. Nothing in
this module touches the session.
"""
from typing import Dict, Optional

from teamboard.models.team import Team, ROLE_OWNER, ROLE_ADMIN
from teamboard.models.task import Task

MANAGER_ROLES = (ROLE_OWNER, ROLE_ADMIN)


def role_of(team: Team, user_id: int) -> Optional[str]:
    """Role of the user in the team, or None when there is no membership row."""
    for membership in team.members:
        if membership.user_id == user_id:
            return membership.role
    return None


def is_member(team: Team, user_id: int) -> bool:
    return role_of(team, user_id) is not None


def can_edit_team(team: Team, user_id: int) -> bool:
    return role_of(team, user_id) in MANAGER_ROLES


def can_delete_team(team: Team, user_id: int) -> bool:
    return role_of(team, user_id) == ROLE_OWNER


def can_invite(team: Team, user_id: int) -> bool:
    role = role_of(team, user_id)
    if role in MANAGER_ROLES:
        return True
    settings = team.settings or {}
    return role is not None and bool(settings.get("allowMembersToInvite"))


def can_manage_members(team: Team, user_id: int, target_user_id: Optional[int] = None) -> bool:
    """Owners and admins manage anyone; a plain member may only act on themselves."""
    if role_of(team, user_id) in MANAGER_ROLES:
        return True
    return target_user_id is not None and target_user_id == user_id and is_member(team, user_id)


def can_change_member_roles(team: Team, user_id: int) -> bool:
    return role_of(team, user_id) == ROLE_OWNER


def team_permissions(team: Team, user_id: int) -> Dict[str, bool]:
    return {
        "canEdit": can_edit_team(team, user_id),
        "canDelete": can_delete_team(team, user_id),
        "canInvite": can_invite(team, user_id),
        "canManageMembers": can_manage_members(team, user_id),
    }


def can_view_task(task: Task, user_id: int, team: Optional[Team] = None) -> bool:
    """Team tasks are visible to team members, personal tasks to their creator only."""
    if task.team_id is not None:
        return team is not None and is_member(team, user_id)
    return task.creator_id == user_id


def can_edit_task(task: Task, user_id: int) -> bool:
    # Single-owner policy: team admins get no extra rights on tasks.
    return task.creator_id == user_id


def can_create_team_task(team: Team, user_id: int) -> bool:
    role = role_of(team, user_id)
    if role in MANAGER_ROLES:
        return True
    task_permissions = (team.settings or {}).get("taskPermissions")
    if not isinstance(task_permissions, dict):
        task_permissions = {}
    return role is not None and bool(task_permissions.get("memberCanCreate", True))
