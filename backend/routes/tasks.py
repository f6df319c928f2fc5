"""Task endpoints. The owner is always the authenticated caller."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from backend.auth import CurrentUser, get_current_user
from backend.payloads import TaskCreate, TaskUpdate
from backend.tasks import MAX_PAGE_SIZE, TaskFilter, TaskStore, get_task_store
from schemas import TaskPriority, TaskStatus

router = APIRouter()

SortField = Literal["createdAt", "dueDate", "priority", "title"]
SortOrder = Literal["asc", "desc"]


@router.get("")
def list_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    sortBy: SortField = "createdAt",
    order: SortOrder = "desc",
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Search, filter and page through the caller's tasks."""
    result = tasks.list(
        current.id,
        TaskFilter(
            status=status.value if status else None,
            priority=priority.value if priority else None,
            search=search,
            page=page,
            limit=limit,
            sort_by=sortBy,
            order=order,
        ),
    )
    return {"success": True, "tasks": result.tasks, "pagination": result.pagination()}


@router.post("", status_code=201)
def create_task(
    data: TaskCreate,
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"success": True, "task": tasks.create(current.id, data)}


@router.get("/stats/summary")
def stats_summary(
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"success": True, **tasks.stats_summary(current.id)}


@router.get("/{task_id}")
def get_task(
    task_id: str,
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"success": True, "task": tasks.get(current.id, task_id)}


@router.put("/{task_id}")
def update_task(
    task_id: str,
    data: TaskUpdate,
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"success": True, "task": tasks.update(current.id, task_id, data)}


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    current: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    tasks.delete(current.id, task_id)
    return {"success": True, "message": "Task deleted successfully."}
