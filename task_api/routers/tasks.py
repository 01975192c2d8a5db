from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..database import get_db
from ..models import TaskPriority, TaskStatus
from ..schemas.task import (
    ApiResponse,
    BulkUpdateRequest,
    BulkUpdateResult,
    SortField,
    StatsPayload,
    TaskCreate,
    TaskPage,
    TaskPayload,
    TaskQuery,
    TaskUpdate,
)
from ..services import stats as stats_service
from ..services import tasks as task_service

router = APIRouter()


def task_query_params(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    user_id: Optional[UUID] = None,
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: SortField = SortField.CREATED_AT,
    order: str = "desc",
) -> TaskQuery:
    try:
        return TaskQuery(
            status=status,
            priority=priority,
            user_id=user_id,
            search=search,
            page=page,
            limit=limit,
            sort_field=sort,
            sort_order=order,
        )
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors())


@router.get("/tasks/stats", response_model=ApiResponse[StatsPayload])
def get_task_stats(
    user_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    """Get task statistics, optionally for a single user."""
    statistics = stats_service.get_task_stats(db, str(user_id) if user_id else None)
    return ApiResponse[StatsPayload](
        data=StatsPayload(statistics=statistics),
        message="Task statistics retrieved successfully",
    )


@router.patch("/tasks/bulk", response_model=ApiResponse[BulkUpdateResult])
def bulk_update_tasks(
    payload: BulkUpdateRequest,
    db: Session = Depends(get_db),
):
    """Apply one update to many tasks."""
    result = task_service.bulk_update_tasks(db, payload.task_ids, payload.update_data)
    return ApiResponse[BulkUpdateResult](
        data=result,
        message=f"{result.updated_count} tasks updated successfully",
    )


@router.get("/tasks", response_model=ApiResponse[TaskPage])
def get_tasks(
    criteria: TaskQuery = Depends(task_query_params),
    db: Session = Depends(get_db),
):
    """Get tasks with filtering, search, sorting and pagination."""
    return ApiResponse[TaskPage](
        data=task_service.list_tasks(db, criteria),
        message="Tasks retrieved successfully",
    )


@router.post("/tasks", response_model=ApiResponse[TaskPayload], status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
):
    """Create a new task."""
    created = task_service.create_task(db, task)
    return ApiResponse[TaskPayload](
        data=TaskPayload(task=created),
        message="Task created successfully",
    )


@router.get("/tasks/{task_id}", response_model=ApiResponse[TaskPayload])
def get_task(
    task_id: UUID,
    db: Session = Depends(get_db),
):
    """Get a specific task by ID."""
    return ApiResponse[TaskPayload](
        data=TaskPayload(task=task_service.get_task(db, str(task_id))),
        message="Task retrieved successfully",
    )


@router.put("/tasks/{task_id}", response_model=ApiResponse[TaskPayload])
def update_task(
    task_id: UUID,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
):
    """Replace any of the supplied task fields."""
    updated = task_service.update_task(db, str(task_id), task_update)
    return ApiResponse[TaskPayload](
        data=TaskPayload(task=updated),
        message="Task updated successfully",
    )


@router.patch("/tasks/{task_id}", response_model=ApiResponse[TaskPayload])
def patch_task(
    task_id: UUID,
    changes: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """Partially update a task. Unknown fields are ignored."""
    updated = task_service.patch_task(db, str(task_id), changes)
    return ApiResponse[TaskPayload](
        data=TaskPayload(task=updated),
        message="Task updated successfully",
    )


@router.patch("/tasks/{task_id}/toggle", response_model=ApiResponse[TaskPayload])
def toggle_task_status(
    task_id: UUID,
    db: Session = Depends(get_db),
):
    """Toggle task status (pending <-> completed)."""
    updated = task_service.toggle_task(db, str(task_id))
    return ApiResponse[TaskPayload](
        data=TaskPayload(task=updated),
        message=f"Task marked as {updated.status.value}",
    )


@router.delete("/tasks/{task_id}", response_model=ApiResponse[None])
def delete_task(
    task_id: UUID,
    db: Session = Depends(get_db),
):
    """Soft delete a task."""
    task_service.delete_task(db, str(task_id))
    return ApiResponse[None](data=None, message="Task deleted successfully")
