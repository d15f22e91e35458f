#teamboard/crud/team.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional
import logging
import secrets

from teamboard.models.team import (
    Team,
    TeamMember,
    ROLE_OWNER,
    ROLE_ADMIN,
    ROLE_MEMBER,
    default_team_settings,
)
from teamboard.core.exceptions import (
    ConflictError,
    NotFoundError,
    TeamNotFound,
    ValidationError,
)
from teamboard.crud.user import get_user_by_email

logger = logging.getLogger("TeamBoard.Teams")

ASSIGNABLE_ROLES = (ROLE_ADMIN, ROLE_MEMBER)
INVITE_CODE_BYTES = 9

def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required")
    return name

def _generate_invite_code(db: Session) -> str:
    while True:
        code = secrets.token_urlsafe(INVITE_CODE_BYTES)
        if not db.query(Team.id).filter(Team.invite_code == code).first():
            return code

def _merge_settings(current: Optional[dict], updates: Optional[dict]) -> dict:
    # shallow: a nested object in updates replaces the stored one wholesale
    merged = dict(current or {})
    merged.update(updates or {})
    return merged

def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while trying to {action}: {e}")
        raise ConflictError(f"Could not {action}: conflicting data")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}")
        raise

def create_team(
    db: Session,
    owner_id: int,
    name: str,
    description: Optional[str] = None,
    settings: Optional[dict] = None,
) -> Team:
    """
    Create a team together with its owner membership, in one commit.
    """
    team = Team(
        name=_clean_name(name),
        description=(description or "").strip() or None,
        owner_id=owner_id,
        invite_code=_generate_invite_code(db),
        is_active=True,
        settings=_merge_settings(default_team_settings(), settings),
    )
    team.members.append(TeamMember(user_id=owner_id, role=ROLE_OWNER))
    db.add(team)
    _commit(db, "create team")
    db.refresh(team)
    logger.info(f"Created team '{team.name}' (ID: {team.id}) owned by user {owner_id}")
    return team

def get_team(db: Session, team_id: int) -> Team:
    """
    Active team by id; inactive (soft-deleted) teams are reported as missing.
    """
    team = db.query(Team).filter(Team.id == team_id, Team.is_active == True).first()
    if not team:
        raise TeamNotFound()
    return team

def list_teams_for_user(db: Session, user_id: int) -> List[Team]:
    return (
        db.query(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .filter(TeamMember.user_id == user_id, Team.is_active == True)
        .order_by(Team.created_at.desc(), Team.id.desc())
        .all()
    )

def update_team(db: Session, team: Team, data: dict) -> Team:
    """
    Update name / description / settings. Settings are merged, not replaced.
    """
    if data.get("name") is not None:
        team.name = _clean_name(data["name"])
    if "description" in data:
        team.description = (data["description"] or "").strip() or None
    if data.get("settings") is not None:
        team.settings = _merge_settings(team.settings, data["settings"])
    _commit(db, "update team")
    db.refresh(team)
    logger.info(f"Updated team '{team.name}' (ID: {team.id})")
    return team

def deactivate_team(db: Session, team: Team) -> Team:
    """
    Soft-delete: the row stays, the team disappears from every lookup.
    """
    team.is_active = False
    _commit(db, "delete team")
    logger.info(f"Soft-deleted team {team.id}")
    return team

def get_membership(db: Session, team: Team, user_id: int) -> Optional[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team.id, TeamMember.user_id == user_id)
        .first()
    )

def list_members(db: Session, team: Team) -> List[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team.id)
        .order_by(TeamMember.id)
        .all()
    )

def add_member(
    db: Session,
    team: Team,
    user_id: int,
    role: str = ROLE_MEMBER,
    invited_by: Optional[int] = None,
    conflict_message: str = "User is already a member of this team",
) -> TeamMember:
    """
    Insert a membership row. A second call for the same (team, user) fails.
    """
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError("Valid role is required (admin or member)")
    if get_membership(db, team, user_id):
        raise ConflictError(conflict_message)
    membership = TeamMember(team_id=team.id, user_id=user_id, role=role, invited_by=invited_by)
    db.add(membership)
    _commit(db, "add member")
    db.refresh(membership)
    db.expire(team, ["members"])
    logger.info(f"Added user {user_id} to team {team.id} as {role}")
    return membership

def invite_member_by_email(
    db: Session,
    team: Team,
    email: str,
    role: str = ROLE_MEMBER,
    invited_by: Optional[int] = None,
) -> TeamMember:
    if not (email or "").strip():
        raise ValidationError("Email is required")
    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundError("User not found with this email")
    return add_member(db, team, user.id, role=role, invited_by=invited_by)

def remove_member(db: Session, team: Team, user_id: int) -> None:
    """
    Delete the membership row. The owner cannot be removed.
    """
    membership = get_membership(db, team, user_id)
    if not membership:
        raise NotFoundError("User is not a member of this team")
    if membership.role == ROLE_OWNER:
        raise ValidationError("Team owner cannot be removed from the team")
    db.delete(membership)
    _commit(db, "remove member")
    db.expire(team, ["members"])
    logger.info(f"Removed user {user_id} from team {team.id}")

def update_member_role(db: Session, team: Team, user_id: int, new_role: str) -> TeamMember:
    """
    Switch a member between admin and member. Ownership is never reassigned here.
    """
    if new_role not in ASSIGNABLE_ROLES:
        raise ValidationError("Valid role is required (admin or member)")
    membership = get_membership(db, team, user_id)
    if not membership:
        raise NotFoundError("User is not a member of this team")
    if membership.role == ROLE_OWNER:
        raise ValidationError("Team owner role cannot be changed")
    membership.role = new_role
    _commit(db, "update member role")
    db.refresh(membership)
    logger.info(f"User {user_id} in team {team.id} is now {new_role}")
    return membership

def find_by_invite_code(db: Session, code: str) -> Team:
    team = (
        db.query(Team)
        .filter(Team.invite_code == (code or "").strip(), Team.is_active == True)
        .first()
    )
    if not team:
        raise NotFoundError("Invalid invite code")
    return team

def join_by_invite_code(db: Session, code: str, user_id: int) -> Team:
    team = find_by_invite_code(db, code)
    add_member(
        db,
        team,
        user_id,
        role=ROLE_MEMBER,
        conflict_message="You are already a member of this team",
    )
    return team
