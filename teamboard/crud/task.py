#teamboard/crud/task.py
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import func, select
import logging

from teamboard.models.task import (
    Task,
    TaskComment,
    task_assignees,
    TASK_STATUSES,
    TASK_PRIORITIES,
    PENDING_STATUSES,
)
from teamboard.models.team import Team, TeamMember
from teamboard.models.user import User
from teamboard.core.exceptions import TaskNotFound, ValidationError

logger = logging.getLogger("TeamBoard.Tasks")

UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date")

# API sort keys -> columns
SORT_FIELDS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "dueDate": Task.due_date,
    "priority": Task.priority,
    "status": Task.status,
    "title": Task.title,
}
SORT_ORDERS = ("asc", "desc")

def _check_status(status: str) -> str:
    if status not in TASK_STATUSES:
        raise ValidationError(f"Invalid status '{status}'. Allowed: {', '.join(TASK_STATUSES)}")
    return status

def _check_priority(priority: str) -> str:
    if priority not in TASK_PRIORITIES:
        raise ValidationError(f"Invalid priority '{priority}'. Allowed: {', '.join(TASK_PRIORITIES)}")
    return priority

def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    return title

def _load_assignees(db: Session, assignee_ids: Iterable[int]) -> List[User]:
    ids = list(dict.fromkeys(assignee_ids))
    if not ids:
        return []
    users = db.query(User).filter(User.id.in_(ids)).order_by(User.id).all()
    missing = set(ids) - {u.id for u in users}
    if missing:
        raise ValidationError(f"Unknown assignee ids: {sorted(missing)}")
    return users

def _paginate(query: Query, page: int, limit: int) -> Tuple[List[Task], int]:
    if page < 1:
        raise ValidationError("Page must be >= 1")
    if limit < 1:
        raise ValidationError("Limit must be >= 1")
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total

def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}")
        raise

def create_task(db: Session, creator_id: int, data: Dict[str, Any]) -> Task:
    """
    Create a task. Status defaults to todo, priority to medium.
    """
    task = Task(
        title=_clean_title(data.get("title")),
        description=data.get("description"),
        status=_check_status(data.get("status") or "todo"),
        priority=_check_priority(data.get("priority") or "medium"),
        due_date=data.get("due_date"),
        creator_id=creator_id,
        team_id=data.get("team_id"),
        is_deleted=False,
    )
    task.assignees = _load_assignees(db, data.get("assignee_ids") or [])
    db.add(task)
    _commit(db, "create task")
    db.refresh(task)
    logger.info(f"Created task {task.id} by user {creator_id} (team: {task.team_id})")
    return task

def get_task(db: Session, task_id: int) -> Task:
    """
    Non-deleted task by id.
    """
    task = db.query(Task).filter(Task.id == task_id, Task.is_deleted == False).first()
    if not task:
        raise TaskNotFound()
    return task

def list_tasks_by_creator(
    db: Session,
    creator_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Task], int]:
    """
    Tasks created by the user, newest first.
    """
    query = db.query(Task).filter(Task.creator_id == creator_id, Task.is_deleted == False)
    if status:
        query = query.filter(Task.status == _check_status(status))
    if priority:
        query = query.filter(Task.priority == _check_priority(priority))
    query = query.order_by(Task.created_at.desc(), Task.id.desc())
    return _paginate(query, page, limit)

def list_team_tasks(
    db: Session,
    team_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Tuple[List[Task], int]:
    """
    Tasks of one team, filtered and sorted by a caller-chosen field.
    """
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Invalid sortBy '{sort_by}'. Allowed: {', '.join(SORT_FIELDS)}")
    if sort_order not in SORT_ORDERS:
        raise ValidationError("sortOrder must be 'asc' or 'desc'")

    query = db.query(Task).filter(Task.team_id == team_id, Task.is_deleted == False)
    if status:
        query = query.filter(Task.status == _check_status(status))
    if priority:
        query = query.filter(Task.priority == _check_priority(priority))
    if assigned_to is not None:
        query = query.filter(
            Task.id.in_(
                select(task_assignees.c.task_id).where(task_assignees.c.user_id == assigned_to)
            )
        )

    column = SORT_FIELDS[sort_by]
    if sort_order == "desc":
        query = query.order_by(column.desc(), Task.id.desc())
    else:
        query = query.order_by(column.asc(), Task.id.asc())
    return _paginate(query, page, limit)

def update_task(db: Session, task: Task, data: Dict[str, Any]) -> Task:
    """
    Apply an update restricted to title, description, status, priority and due date.
    """
    changes = {}
    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "title":
            value = _clean_title(value)
        elif field == "status":
            value = _check_status(value)
        elif field == "priority":
            value = _check_priority(value)
        changes[field] = value

    for field, value in changes.items():
        setattr(task, field, value)
    _commit(db, "update task")
    db.refresh(task)
    if changes:
        logger.info(f"Updated task {task.id} fields: {sorted(changes)}")
    else:
        logger.info(f"Update called but no changes for task {task.id}")
    return task

def delete_task(db: Session, task: Task) -> Task:
    """
    Soft-delete the task; it vanishes from every lookup and listing.
    """
    task.is_deleted = True
    task.deleted_at = datetime.now(timezone.utc)
    _commit(db, "delete task")
    logger.info(f"Deleted task {task.id}")
    return task

def add_comment(db: Session, task: Task, author_id: int, content: Optional[str]) -> TaskComment:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required")
    comment = TaskComment(content=content, author_id=author_id)
    task.comments.append(comment)
    _commit(db, "add comment")
    db.refresh(comment)
    logger.info(f"User {author_id} commented on task {task.id}")
    return comment

def task_stats(db: Session, user_id: int) -> Dict[str, int]:
    """
    Counts across every active team the user belongs to.
    """
    team_ids = [
        row[0]
        for row in db.query(Team.id)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .filter(TeamMember.user_id == user_id, Team.is_active == True)
        .all()
    ]
    if not team_ids:
        return {"totalTasks": 0, "teams": 0, "pendingTasks": 0}

    base = db.query(func.count(Task.id)).filter(Task.team_id.in_(team_ids), Task.is_deleted == False)
    total = base.scalar() or 0
    pending = base.filter(Task.status.in_(PENDING_STATUSES)).scalar() or 0
    return {"totalTasks": total, "teams": len(team_ids), "pendingTasks": pending}

def list_open_assigned_tasks(db: Session, user_id: int) -> List[Task]:
    return (
        db.query(Task)
        .join(task_assignees, task_assignees.c.task_id == Task.id)
        .filter(
            task_assignees.c.user_id == user_id,
            Task.is_deleted == False,
            Task.status != "completed",
        )
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )
