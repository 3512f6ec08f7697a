from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import desc
from sqlalchemy.orm import Session

from todo_api.core.errors import NotFound, ValidationFailure
from todo_api.models.task import Task

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "completed")


def _clean_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise ValidationFailure("Title must not be empty", details={"field": "title"})
    return title


def _clean_description(value: Any) -> str | None:
    if value is None:
        return None
    description = str(value).strip()
    return description or None


def create_task(db: Session, owner_id: str, *, title: str, description: str | None = None) -> Task:
    task = Task(
        user_id=owner_id,
        title=_clean_title(title),
        description=_clean_description(description),
        completed=False,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Created task id=%s for user id=%s", task.id, owner_id)
    return task


def list_tasks(db: Session, owner_id: str) -> list[Task]:
    return (
        db.query(Task)
        .filter(Task.user_id == owner_id)
        .order_by(desc(Task.created_at), desc(Task.id))
        .all()
    )


def get_task_for_user(db: Session, task_id: str, owner_id: str) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == owner_id).first()
    if not task:
        raise NotFound("Task not found")
    return task


def update_task(db: Session, task_id: str, owner_id: str, changes: dict[str, Any]) -> Task:
    """
    Apply a partial update. Only keys present in ``changes`` are touched;
    unknown keys are ignored.
    """
    task = get_task_for_user(db, task_id, owner_id)

    data = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if not data:
        return task

    if "title" in data:
        data["title"] = _clean_title(data["title"])
    if "description" in data:
        data["description"] = _clean_description(data["description"])
    if "completed" in data:
        if data["completed"] is None:
            raise ValidationFailure("completed must be a boolean", details={"field": "completed"})
        data["completed"] = bool(data["completed"])

    for k, v in data.items():
        setattr(task, k, v)

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task_id: str, owner_id: str) -> None:
    task = get_task_for_user(db, task_id, owner_id)
    db.delete(task)
    db.commit()
    logger.info("Deleted task id=%s for user id=%s", task_id, owner_id)
