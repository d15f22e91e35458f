#teamboard/schemas/user.py
from pydantic import Field
from typing import Optional
from datetime import datetime

from teamboard.schemas.common import CamelModel

class UserSummary(CamelModel):
    """
    UserSummary: the id/name/email triple embedded in other resources.
    """
    id: int
    name: str
    email: str

class UserRead(UserSummary):
    role: str
    created_at: Optional[datetime] = None

class ProfileUpdate(CamelModel):
    """
    ProfileUpdate: all fields optional; newPassword needs currentPassword.
    """
    name: Optional[str] = Field(None, description="New display name")
    email: Optional[str] = Field(None, description="New email")
    current_password: Optional[str] = Field(None, description="Required when changing the password")
    new_password: Optional[str] = Field(None, min_length=6, description="New password")

