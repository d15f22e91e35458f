import pytest
from sqlalchemy.orm import Session

from teamboard.crud import task as crud_task
from teamboard.crud import team as crud_team
from teamboard.core.exceptions import TaskNotFound, ValidationError
from teamboard.models.task import Task as TaskModel

def _task(db: Session, creator, title="Task", **extra):
    data = {"title": title}
    data.update(extra)
    return crud_task.create_task(db, creator.id, data)

def test_create_task_defaults(db: Session, alice):
    task = _task(db, alice, title="  Write docs  ")
    assert task.id is not None
    assert task.title == "Write docs"
    assert task.status == "todo"
    assert task.priority == "medium"
    assert task.creator_id == alice.id
    assert task.team_id is None
    assert task.assignees == []
    assert task.is_deleted is False

def test_create_task_validation(db: Session, alice):
    with pytest.raises(ValidationError, match="Title is required"):
        _task(db, alice, title=" ")
    with pytest.raises(ValidationError, match="Invalid status"):
        _task(db, alice, status="blocked")
    with pytest.raises(ValidationError, match="Invalid priority"):
        _task(db, alice, priority="urgent")
    with pytest.raises(ValidationError, match="Unknown assignee ids"):
        _task(db, alice, assignee_ids=[99999])

def test_create_task_with_assignees(db: Session, alice, bob, team):
    task = _task(db, alice, team_id=team.id, assignee_ids=[bob.id, alice.id, bob.id])
    assert task.team_id == team.id
    assert [u.id for u in task.assignees] == sorted([alice.id, bob.id])

def test_get_task_hides_deleted(db: Session, alice):
    task = _task(db, alice)
    assert crud_task.get_task(db, task.id).id == task.id
    crud_task.delete_task(db, task)
    with pytest.raises(TaskNotFound):
        crud_task.get_task(db, task.id)
    row = db.get(TaskModel, task.id)
    assert row.is_deleted is True
    assert row.deleted_at is not None

def test_update_task_only_mutable_fields(db: Session, alice, bob):
    task = _task(db, alice)
    updated = crud_task.update_task(db, task, {
        "title": "Renamed",
        "status": "in_progress",
        "priority": "high",
        "creator_id": bob.id,
        "team_id": 42,
    })
    assert updated.title == "Renamed"
    assert updated.status == "in_progress"
    assert updated.priority == "high"
    assert updated.creator_id == alice.id
    assert updated.team_id is None

def test_update_task_rejects_bad_status(db: Session, alice):
    task = _task(db, alice)
    with pytest.raises(ValidationError):
        crud_task.update_task(db, task, {"status": "done"})
    assert task.status == "todo"

def test_list_tasks_by_creator_newest_first(db: Session, alice, bob):
    first = _task(db, alice, title="first")
    second = _task(db, alice, title="second", priority="high")
    _task(db, bob, title="bob's")

    items, total = crud_task.list_tasks_by_creator(db, alice.id)
    assert total == 2
    assert [t.id for t in items] == [second.id, first.id]

    items, total = crud_task.list_tasks_by_creator(db, alice.id, priority="high")
    assert total == 1
    assert items[0].id == second.id

def test_list_tasks_by_creator_pagination(db: Session, alice):
    for i in range(5):
        _task(db, alice, title=f"t{i}")
    items, total = crud_task.list_tasks_by_creator(db, alice.id, page=3, limit=2)
    assert total == 5
    assert len(items) == 1
    items, total = crud_task.list_tasks_by_creator(db, alice.id, page=4, limit=2)
    assert total == 5
    assert items == []

def test_list_team_tasks_filters_and_sort(db: Session, alice, bob, team):
    crud_team.add_member(db, team, bob.id)
    a = _task(db, alice, title="b-task", team_id=team.id, assignee_ids=[bob.id])
    b = _task(db, alice, title="a-task", team_id=team.id, status="completed")
    c = _task(db, bob, title="c-task", team_id=team.id, assignee_ids=[bob.id])
    _task(db, alice, title="personal")

    items, total = crud_task.list_team_tasks(db, team.id)
    assert total == 3
    assert [t.id for t in items] == [c.id, b.id, a.id]

    items, _ = crud_task.list_team_tasks(db, team.id, sort_by="title", sort_order="asc")
    assert [t.title for t in items] == ["a-task", "b-task", "c-task"]

    items, total = crud_task.list_team_tasks(db, team.id, assigned_to=bob.id)
    assert total == 2
    assert {t.id for t in items} == {a.id, c.id}

    items, total = crud_task.list_team_tasks(db, team.id, status="completed")
    assert [t.id for t in items] == [b.id]

    with pytest.raises(ValidationError):
        crud_task.list_team_tasks(db, team.id, sort_by="secret")
    with pytest.raises(ValidationError):
        crud_task.list_team_tasks(db, team.id, sort_order="sideways")

def test_add_comment(db: Session, alice, bob):
    task = _task(db, alice)
    comment = crud_task.add_comment(db, task, bob.id, "  Looks good  ")
    assert comment.id is not None
    assert comment.content == "Looks good"
    assert comment.task_id == task.id
    assert comment.author.id == bob.id
    assert [c.id for c in task.comments] == [comment.id]
    with pytest.raises(ValidationError):
        crud_task.add_comment(db, task, bob.id, "   ")

def test_task_stats(db: Session, alice, bob, team):
    assert crud_task.task_stats(db, bob.id) == {"totalTasks": 0, "teams": 0, "pendingTasks": 0}

    _task(db, alice, team_id=team.id)
    _task(db, alice, team_id=team.id, status="completed")
    gone = _task(db, alice, team_id=team.id)
    crud_task.delete_task(db, gone)
    _task(db, alice, title="personal")

    assert crud_task.task_stats(db, alice.id) == {"totalTasks": 2, "teams": 1, "pendingTasks": 1}

def test_list_open_assigned_tasks(db: Session, alice, bob):
    open_task = _task(db, alice, assignee_ids=[bob.id])
    _task(db, alice, assignee_ids=[bob.id], status="completed")
    _task(db, alice)
    assert [t.id for t in crud_task.list_open_assigned_tasks(db, bob.id)] == [open_task.id]
