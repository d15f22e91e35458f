#teamboard/models/user.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from teamboard.models.base import Base

class User(Base):
    """
    User: account record. Email is unique and stored lower-case.
    """
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, doc="Display name")
    email: str = Column(String(255), unique=True, nullable=False, index=True, doc="Email")
    password_hash: str = Column(String(128), nullable=False, doc="Password hash (never the raw password)")
    role: str = Column(String(32), default="user", nullable=False, doc="Account role")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # --- Relationships ---
    memberships = relationship("TeamMember", back_populates="user", foreign_keys="TeamMember.user_id")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
