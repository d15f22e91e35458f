#teamboard/schemas/team.py
from pydantic import ConfigDict, EmailStr, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from teamboard.schemas.common import CamelModel
from teamboard.schemas.user import UserSummary

AssignableRole = Literal["admin", "member"]

class TaskPermissionSettings(CamelModel):
    model_config = ConfigDict(extra="forbid")

    member_can_create: bool = True
    member_can_edit: bool = True
    member_can_delete: bool = False

class TeamSettings(CamelModel):
    """
    TeamSettings: the accepted settings keys; unknown keys are rejected.

    Only the fields a client sent are merged over the stored settings. A sent
    ``taskPermissions`` object replaces the stored one as a whole.
    """
    model_config = ConfigDict(extra="forbid")

    is_private: bool = False
    allow_members_to_invite: bool = False
    task_permissions: TaskPermissionSettings = Field(default_factory=TaskPermissionSettings)

    def as_patch(self) -> Dict[str, Any]:
        patch = self.model_dump(by_alias=True, exclude_unset=True, exclude={"task_permissions"})
        if "task_permissions" in self.model_fields_set:
            patch["taskPermissions"] = self.task_permissions.model_dump(by_alias=True)
        return patch

class TeamCreate(CamelModel):
    """
    TeamCreate: the caller becomes the owner.
    """
    name: str = Field(..., examples=["Eng"], description="Team name")
    description: Optional[str] = Field(None, examples=["Engineering"], description="Description")
    settings: Optional[TeamSettings] = Field(None, description="Merged over the default settings")

class TeamUpdate(CamelModel):
    """
    TeamUpdate: all fields optional; settings merge shallowly.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[TeamSettings] = None

class MemberRead(CamelModel):
    user_id: int
    role: str
    invited_by: Optional[int] = None
    joined_at: Optional[datetime] = None
    user: UserSummary

class TeamRead(CamelModel):
    """
    TeamRead: team with owner and members.
    """
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    owner: UserSummary
    invite_code: str
    is_active: bool
    settings: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    members: List[MemberRead] = Field(default_factory=list)

class TeamPermissions(CamelModel):
    can_edit: bool
    can_delete: bool
    can_invite: bool
    can_manage_members: bool

class TeamData(CamelModel):
    team: TeamRead

class TeamDetail(TeamData):
    user_role: Optional[str] = None
    permissions: TeamPermissions

class TeamList(CamelModel):
    teams: List[TeamRead]
    count: int

class MemberInvite(CamelModel):
    email: EmailStr = Field(..., examples=["bob@example.com"])
    role: AssignableRole = Field("member", examples=["member"])

class MemberRoleUpdate(CamelModel):
    role: AssignableRole = Field(..., examples=["admin"])

class MemberData(CamelModel):
    member: MemberRead

class MemberList(CamelModel):
    members: List[MemberRead]
    invite_code: str
    count: int
