from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from todo_api.auth.identity import Identity
from todo_api.core.database import get_db
from todo_api.dependencies.auth import get_current_identity
from todo_api.schemas.task import TaskCreate, TaskOut, TaskUpdate
from todo_api.services import tasks as task_service

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(get_current_identity)])


@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return task_service.create_task(
        db,
        identity.id,  # ✅ ownership
        title=payload.title,
        description=payload.description,
    )


@router.get("/", response_model=list[TaskOut])
def list_tasks(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return task_service.list_tasks(db, identity.id)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return task_service.get_task_for_user(db, task_id, identity.id)


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    changes = payload.model_dump(exclude_unset=True)
    return task_service.update_task(db, task_id, identity.id, changes)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    task_service.delete_task(db, task_id, identity.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
