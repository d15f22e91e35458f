#teamboard/schemas/profile.py
from pydantic import Field
from typing import List

from teamboard.schemas.common import CamelModel
from teamboard.schemas.task import TaskRead
from teamboard.schemas.user import UserRead

class ProfileTeam(CamelModel):
    id: int
    name: str
    role: str

class UserProfile(UserRead):
    """
    UserProfile: the caller with their teams and open assigned tasks.
    """
    teams: List[ProfileTeam] = Field(default_factory=list)
    assigned_tasks: List[TaskRead] = Field(default_factory=list)
