#teamboard/schemas/task.py
from pydantic import Field
from typing import List, Literal, Optional
from datetime import datetime

from teamboard.schemas.common import CamelModel
from teamboard.schemas.user import UserSummary

TaskStatus = Literal["todo", "in_progress", "review", "completed"]
TaskPriority = Literal["low", "medium", "high"]

class TaskCreate(CamelModel):
    """
    TaskCreate: status defaults to todo, priority to medium.
    """
    title: str = Field(..., examples=["Write release notes"], description="Title")
    description: Optional[str] = Field(None, description="Description")
    status: Optional[TaskStatus] = Field(None, description="todo / in_progress / review / completed")
    priority: Optional[TaskPriority] = Field(None, description="low / medium / high")
    due_date: Optional[datetime] = Field(None, description="Due date")
    team_id: Optional[int] = Field(None, description="Team the task belongs to")
    assignee_ids: List[int] = Field(default_factory=list, description="Assigned user ids")

class TaskUpdate(CamelModel):
    """
    TaskUpdate: only these fields are mutable.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

class CommentCreate(CamelModel):
    content: str = Field(..., examples=["Looks good"])

class CommentRead(CamelModel):
    id: int
    content: str
    task_id: int
    author_id: int
    created_at: Optional[datetime] = None
    author: UserSummary

class TaskRead(CamelModel):
    """
    TaskRead: task as returned in lists and after mutations.
    """
    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    creator_id: int
    team_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    creator: UserSummary
    assignees: List[UserSummary] = Field(default_factory=list)

class TaskDetail(TaskRead):
    comments: List[CommentRead] = Field(default_factory=list)

class TaskData(CamelModel):
    task: TaskRead

class TaskPermissions(CamelModel):
    can_edit: bool
    can_delete: bool

class TaskDetailData(CamelModel):
    task: TaskDetail
    permissions: TaskPermissions

class CommentData(CamelModel):
    comment: CommentRead

class TaskPage(CamelModel):
    """
    TaskPage: one page of tasks; pages = ceil(total / limit).
    """
    tasks: List[TaskRead]
    total: int
    page: int
    limit: int
    pages: int

class TaskStats(CamelModel):
    total_tasks: int
    teams: int
    pending_tasks: int
