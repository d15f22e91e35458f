#teamboard/api/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from teamboard.schemas.auth import RegisterRequest, LoginRequest, AuthResult
from teamboard.schemas.profile import ProfileTeam, UserProfile
from teamboard.schemas.response import ApiResponse
from teamboard.schemas.task import TaskRead
from teamboard.schemas.user import ProfileUpdate, UserRead
from teamboard.crud.user import authenticate_user, create_user, update_profile
from teamboard.crud.team import list_teams_for_user
from teamboard.crud.task import list_open_assigned_tasks
from teamboard.core import permissions
from teamboard.core.exceptions import AuthError
from teamboard.core.security import TokenIssuer
from teamboard.dependencies import get_db, get_current_user, get_token_issuer
from teamboard.models.user import User as UserModel

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger("TeamBoard.Auth")

def _auth_result(user: UserModel, token_issuer: TokenIssuer) -> AuthResult:
    return AuthResult(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        token=token_issuer.issue(user.id),
    )

@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Create an account and return it with a fresh token.
    """
    user = create_user(db, data.model_dump())
    return ApiResponse(message="User registered successfully", data=_auth_result(user, token_issuer))

@router.post("/login", response_model=ApiResponse[AuthResult])
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Email + password login.
    """
    user = authenticate_user(db, data.email, data.password)
    if not user:
        logger.info(f"Failed login for {data.email}")
        raise AuthError("Invalid credentials")
    return ApiResponse(data=_auth_result(user, token_issuer))

@router.get("/profile", response_model=ApiResponse[UserProfile])
def get_profile(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    The caller with their teams (and role in each) and open assigned tasks.
    """
    teams = [
        ProfileTeam(id=team.id, name=team.name, role=permissions.role_of(team, current_user.id))
        for team in list_teams_for_user(db, current_user.id)
    ]
    assigned = [TaskRead.model_validate(task) for task in list_open_assigned_tasks(db, current_user.id)]
    profile = UserProfile(
        **UserRead.model_validate(current_user).model_dump(),
        teams=teams,
        assigned_tasks=assigned,
    )
    return ApiResponse(data=profile)

@router.put("/profile", response_model=ApiResponse[UserRead])
def put_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Update name / email / password. A wrong currentPassword is a 401.
    """
    user = update_profile(db, current_user, data.model_dump(exclude_unset=True))
    return ApiResponse(message="Profile updated successfully", data=UserRead.model_validate(user))
