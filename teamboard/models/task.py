#teamboard/models/task.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Table, Index, func
)
from sqlalchemy.orm import relationship
from teamboard.models.base import Base

TASK_STATUSES = ("todo", "in_progress", "review", "completed")
PENDING_STATUSES = ("todo", "in_progress", "review")
TASK_PRIORITIES = ("low", "medium", "high")

task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

class Task(Base):
    """
    Task: owned by its creator, optionally scoped to a team. Soft-deleted via is_deleted.
    """
    __tablename__ = "tasks"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    title: str = Column(String(200), nullable=False, doc="Title")
    description: str = Column(Text, nullable=True, doc="Description")
    status: str = Column(String(24), nullable=False, default="todo", doc="todo / in_progress / review / completed")
    priority: str = Column(String(16), nullable=False, default="medium", doc="low / medium / high")
    due_date: datetime = Column(DateTime(timezone=True), nullable=True, doc="Due date")
    creator_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Creator user id")
    team_id: int = Column(Integer, ForeignKey("teams.id"), nullable=True, index=True, doc="Team id (optional)")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    is_deleted: bool = Column(Boolean, default=False, nullable=False, doc="Soft-delete")
    deleted_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Soft-delete time")

    creator = relationship("User", foreign_keys=[creator_id])
    team = relationship("Team")
    assignees = relationship("User", secondary=task_assignees, order_by="User.id")
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.id",
    )

    __table_args__ = (
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_priority", "priority"),
    )

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', status={self.status}, "
            f"priority={self.priority}, team_id={self.team_id})>"
        )

class TaskComment(Base):
    """
    TaskComment: append-only comment on a task.
    """
    __tablename__ = "task_comments"

    id: int = Column(Integer, primary_key=True)
    content: str = Column(Text, nullable=False)
    task_id: int = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task = relationship("Task", back_populates="comments")
    author = relationship("User")

    def __repr__(self):
        return f"<TaskComment(id={self.id}, task_id={self.task_id}, author_id={self.author_id})>"
