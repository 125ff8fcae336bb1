# PURPOSE: owner-scoped task CRUD under /api/tasks.
# Edits are full replacement; there is no PATCH and no soft delete.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..models import Task, TaskEnvelope, TaskIn, TaskList, UserPublic
from ..store_db import (
    get_db,
    list_tasks as db_list_tasks,
    create_task as db_create_task,
    replace_task as db_replace_task,
    delete_task as db_delete_task,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskList)
async def list_tasks(
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    items = db_list_tasks(db, owner=user.username)
    return TaskList(user=user.username, tasks=[Task.model_validate(t) for t in items])


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    item: TaskIn,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    task = db_create_task(db, item, owner=user.username)
    return TaskEnvelope(user=user.username, task=Task.model_validate(task))


@router.put("/{task_id}", response_model=TaskEnvelope)
async def put_task(
    task_id: str,
    item: TaskIn,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    updated = db_replace_task(db, task_id, item, owner=user.username)
    if not updated:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskEnvelope(user=user.username, task=Task.model_validate(updated))


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: UserPublic = Depends(get_current_user),
):
    ok = db_delete_task(db, task_id, owner=user.username)
    if not ok:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True}
