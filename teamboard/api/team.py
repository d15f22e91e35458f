#teamboard/api/team.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from teamboard.schemas.response import ApiResponse
from teamboard.schemas.team import (
    MemberData,
    MemberInvite,
    MemberList,
    MemberRead,
    MemberRoleUpdate,
    TeamCreate,
    TeamData,
    TeamDetail,
    TeamList,
    TeamPermissions,
    TeamRead,
    TeamUpdate,
)
from teamboard.crud import team as crud_team
from teamboard.core import permissions
from teamboard.core.exceptions import ForbiddenError
from teamboard.dependencies import get_db, get_current_user
from teamboard.models.team import Team as TeamModel
from teamboard.models.user import User as UserModel

router = APIRouter(prefix="/api/teams", tags=["Teams"])

NOT_A_MEMBER = "Access denied. You are not a member of this team."
INSUFFICIENT = "Access denied. Insufficient permissions."

def _team_data(team: TeamModel) -> TeamData:
    return TeamData(team=TeamRead.model_validate(team))

def _member_team(db: Session, team_id: int, user: UserModel) -> TeamModel:
    team = crud_team.get_team(db, team_id)
    if not permissions.is_member(team, user.id):
        raise ForbiddenError(NOT_A_MEMBER)
    return team

@router.post("", response_model=ApiResponse[TeamData], status_code=status.HTTP_201_CREATED)
def create_team_api(
    data: TeamCreate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Create a team; the caller becomes its owner.
    """
    team = crud_team.create_team(
        db,
        owner_id=user.id,
        name=data.name,
        description=data.description,
        settings=data.settings.as_patch() if data.settings is not None else None,
    )
    return ApiResponse(message="Team created successfully", data=_team_data(team))

@router.get("", response_model=ApiResponse[TeamList])
def list_my_teams(
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Active teams the caller belongs to, newest first.
    """
    teams = crud_team.list_teams_for_user(db, user.id)
    return ApiResponse(data=TeamList(teams=[TeamRead.model_validate(t) for t in teams], count=len(teams)))

@router.post("/join/{invite_code}", response_model=ApiResponse[TeamData])
def join_team(
    invite_code: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Join a team as a plain member using its invite code.
    """
    team = crud_team.join_by_invite_code(db, invite_code, user.id)
    return ApiResponse(message="Successfully joined the team", data=_team_data(team))

@router.get("/{team_id}", response_model=ApiResponse[TeamDetail])
def read_team(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Team detail with the caller's role and derived permissions (members only).
    """
    team = _member_team(db, team_id, user)
    detail = TeamDetail(
        team=TeamRead.model_validate(team),
        user_role=permissions.role_of(team, user.id),
        permissions=TeamPermissions.model_validate(permissions.team_permissions(team, user.id)),
    )
    return ApiResponse(data=detail)

@router.put("/{team_id}", response_model=ApiResponse[TeamData])
def update_team_api(
    team_id: int,
    data: TeamUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Update name / description / settings. Owner or admin only.
    """
    team = crud_team.get_team(db, team_id)
    if not permissions.can_edit_team(team, user.id):
        raise ForbiddenError(INSUFFICIENT)
    changes = data.model_dump(exclude_unset=True, exclude={"settings"})
    if data.settings is not None:
        changes["settings"] = data.settings.as_patch()
    team = crud_team.update_team(db, team, changes)
    return ApiResponse(message="Team updated successfully", data=_team_data(team))

@router.delete("/{team_id}", response_model=ApiResponse[dict])
def delete_team_api(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Soft-delete the team. Owner only.
    """
    team = crud_team.get_team(db, team_id)
    if not permissions.can_delete_team(team, user.id):
        raise ForbiddenError("Access denied. Only team owner can delete the team.")
    crud_team.deactivate_team(db, team)
    return ApiResponse(message="Team deleted successfully", data={"id": team_id})

@router.get("/{team_id}/members", response_model=ApiResponse[MemberList])
def list_team_members(
    team_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Members of the team plus its invite code (members only).
    """
    team = _member_team(db, team_id, user)
    members = [MemberRead.model_validate(m) for m in crud_team.list_members(db, team)]
    return ApiResponse(data=MemberList(members=members, invite_code=team.invite_code, count=len(members)))

@router.post("/{team_id}/members", response_model=ApiResponse[MemberData])
def invite_member(
    team_id: int,
    data: MemberInvite,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Add a registered user (looked up by email) to the team.
    """
    team = crud_team.get_team(db, team_id)
    if not permissions.can_invite(team, user.id):
        raise ForbiddenError("Access denied. You cannot invite members to this team.")
    membership = crud_team.invite_member_by_email(db, team, data.email, role=data.role, invited_by=user.id)
    return ApiResponse(message="Member invited successfully", data=MemberData(member=MemberRead.model_validate(membership)))

@router.delete("/{team_id}/members/{member_id}", response_model=ApiResponse[dict])
def remove_team_member(
    team_id: int,
    member_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Remove a member. Owners/admins remove anyone but the owner; members only themselves.
    """
    team = crud_team.get_team(db, team_id)
    if not permissions.can_manage_members(team, user.id, target_user_id=member_id):
        raise ForbiddenError(INSUFFICIENT)
    crud_team.remove_member(db, team, member_id)
    return ApiResponse(message="Member removed successfully", data={"teamId": team_id, "userId": member_id})

@router.put("/{team_id}/members/{member_id}", response_model=ApiResponse[MemberData])
def change_member_role(
    team_id: int,
    member_id: int,
    data: MemberRoleUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """
    Switch a member between admin and member. Owner only.
    """
    team = crud_team.get_team(db, team_id)
    if not permissions.can_change_member_roles(team, user.id):
        raise ForbiddenError("Access denied. Only team owner can update member roles.")
    membership = crud_team.update_member_role(db, team, member_id, data.role)
    return ApiResponse(message="Member role updated successfully", data=MemberData(member=MemberRead.model_validate(membership)))
