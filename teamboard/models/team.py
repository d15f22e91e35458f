#teamboard/models/team.py
import copy
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, JSON, Boolean, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from teamboard.models.base import Base

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

DEFAULT_TEAM_SETTINGS = {
    "isPrivate": False,
    "allowMembersToInvite": False,
    "taskPermissions": {
        "memberCanCreate": True,
        "memberCanEdit": True,
        "memberCanDelete": False,
    },
}

def default_team_settings() -> dict:
    return copy.deepcopy(DEFAULT_TEAM_SETTINGS)

class Team(Base):
    """
    Team: a group of users with an owner and an invite code. Soft-deleted via is_active.
    """
    __tablename__ = "teams"

    id: int = Column(Integer, primary_key=True)
    name: str = Column(String(128), nullable=False, index=True, doc="Team name")
    description: str = Column(String(1000), nullable=True, doc="Description")
    owner_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Owner user id")
    invite_code: str = Column(String(64), unique=True, nullable=False, index=True, doc="Self-service join code")
    is_active: bool = Column(Boolean, default=True, nullable=False, doc="Soft-delete flag")
    settings: dict = Column(JSON, nullable=False, default=default_team_settings, doc="Team settings")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", foreign_keys=[owner_id])
    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="TeamMember.id",
    )

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}', active={self.is_active})>"

class TeamMember(Base):
    """
    TeamMember: membership row; exactly one per (team, user).
    """
    __tablename__ = "team_members"

    id: int = Column(Integer, primary_key=True)
    team_id: int = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role: str = Column(String(16), nullable=False, default=ROLE_MEMBER, doc="owner / admin / member")
    invited_by: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="Inviting user id")
    joined_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])
    inviter = relationship("User", foreign_keys=[invited_by])

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    def __repr__(self):
        return f"<TeamMember(team_id={self.team_id}, user_id={self.user_id}, role='{self.role}')>"
