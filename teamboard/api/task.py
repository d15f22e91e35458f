#teamboard/api/task.py
import logging
import math
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from teamboard.schemas.response import ApiResponse
from teamboard.schemas.task import (
    CommentCreate,
    CommentData,
    CommentRead,
    TaskCreate,
    TaskData,
    TaskDetail,
    TaskDetailData,
    TaskPage,
    TaskPermissions,
    TaskPriority,
    TaskRead,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from teamboard.crud import task as crud_task
from teamboard.crud.team import get_team
from teamboard.core import permissions
from teamboard.core.exceptions import ForbiddenError, TeamNotFound
from teamboard.core.settings import settings
from teamboard.dependencies import get_db, get_current_user, get_notifier
from teamboard.models.task import Task as TaskModel
from teamboard.models.user import User as UserModel
from teamboard.services.notifier import ChannelRegistry, NEW_COMMENT, TASK_CREATED, TASK_UPDATED

logger = logging.getLogger("TeamBoard.TasksAPI")

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

def _page(items, total: int, page: int, limit: int) -> TaskPage:
    return TaskPage(
        tasks=[TaskRead.model_validate(t) for t in items],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )

def _visible_task(db: Session, task_id: int, user: UserModel) -> TaskModel:
    task = crud_task.get_task(db, task_id)
    if not permissions.can_view_task(task, user.id, task.team):
        raise ForbiddenError("Access denied")
    return task

def _owned_task(db: Session, task_id: int, user: UserModel, action: str) -> TaskModel:
    task = crud_task.get_task(db, task_id)
    if not permissions.can_edit_task(task, user.id):
        raise ForbiddenError(f"Access denied. Cannot {action} this task.")
    return task

def _announce(
    background_tasks: BackgroundTasks,
    notifier: ChannelRegistry,
    team_id: Optional[int],
    event: str,
    payload,
) -> None:
    if team_id is None:
        return
    data = payload.model_dump(mode="json", by_alias=True)
    data["teamId"] = team_id
    background_tasks.add_task(notifier.publish, team_id, event, data)
    logger.debug(f"Queued {event} for team {team_id}")

@router.get("/stats", response_model=ApiResponse[TaskStats])
def get_task_stats(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Task counts across every team the caller belongs to.
    """
    return ApiResponse(data=TaskStats.model_validate(crud_task.task_stats(db, current_user.id)))

@router.get("/my-tasks", response_model=ApiResponse[TaskPage])
def get_my_tasks(
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Tasks created by the caller, newest first, paginated.
    """
    items, total = crud_task.list_tasks_by_creator(
        db, current_user.id, status=task_status, priority=priority, page=page, limit=limit
    )
    return ApiResponse(data=_page(items, total, page, limit))

@router.get("/team/{team_id}", response_model=ApiResponse[TaskPage])
def get_team_tasks(
    team_id: int,
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    assigned_to: Optional[int] = Query(None, alias="assignedTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Tasks of a team the caller belongs to. A missing team is reported as 403 too.
    """
    try:
        team = get_team(db, team_id)
    except TeamNotFound:
        raise ForbiddenError("Access denied")
    if not permissions.is_member(team, current_user.id):
        raise ForbiddenError("Access denied")

    items, total = crud_task.list_team_tasks(
        db,
        team.id,
        status=task_status,
        priority=priority,
        assigned_to=assigned_to,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(data=_page(items, total, page, limit))

@router.post("", response_model=ApiResponse[TaskData], status_code=status.HTTP_201_CREATED)
def create_new_task(
    data: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    notifier: ChannelRegistry = Depends(get_notifier),
):
    """
    Create a task; team tasks need membership and are announced to the team channel.
    """
    if data.team_id is not None:
        team = get_team(db, data.team_id)
        if not permissions.can_create_team_task(team, current_user.id):
            raise ForbiddenError("Access denied. You cannot create tasks in this team.")

    task = crud_task.create_task(db, current_user.id, data.model_dump())
    task_read = TaskRead.model_validate(task)
    _announce(background_tasks, notifier, task.team_id, TASK_CREATED, task_read)
    return ApiResponse(message="Task created successfully", data=TaskData(task=task_read))

@router.get("/{task_id}", response_model=ApiResponse[TaskDetailData])
def get_one_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Task with comments and the caller's edit/delete rights.
    """
    task = _visible_task(db, task_id, current_user)
    can_edit = permissions.can_edit_task(task, current_user.id)
    return ApiResponse(
        data=TaskDetailData(
            task=TaskDetail.model_validate(task),
            permissions=TaskPermissions(can_edit=can_edit, can_delete=can_edit),
        )
    )

@router.put("/{task_id}", response_model=ApiResponse[TaskData])
def update_one_task(
    task_id: int,
    data: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    notifier: ChannelRegistry = Depends(get_notifier),
):
    """
    Update a task. Creator only.
    """
    task = _owned_task(db, task_id, current_user, "edit")
    task = crud_task.update_task(db, task, data.model_dump(exclude_unset=True))
    task_read = TaskRead.model_validate(task)
    _announce(background_tasks, notifier, task.team_id, TASK_UPDATED, task_read)
    return ApiResponse(message="Task updated successfully", data=TaskData(task=task_read))

@router.delete("/{task_id}", response_model=ApiResponse[dict])
def delete_one_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Delete a task (soft delete). Creator only.
    """
    task = _owned_task(db, task_id, current_user, "delete")
    crud_task.delete_task(db, task)
    return ApiResponse(message="Task deleted successfully", data={"id": task_id})

@router.post("/{task_id}/comments", response_model=ApiResponse[CommentData], status_code=status.HTTP_201_CREATED)
def add_task_comment(
    task_id: int,
    data: CommentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
    notifier: ChannelRegistry = Depends(get_notifier),
):
    """
    Comment on a task the caller can see.
    """
    task = _visible_task(db, task_id, current_user)
    comment = crud_task.add_comment(db, task, current_user.id, data.content)
    comment_read = CommentRead.model_validate(comment)
    _announce(background_tasks, notifier, task.team_id, NEW_COMMENT, comment_read)
    return ApiResponse(message="Comment added successfully", data=CommentData(comment=comment_read))
