"""Task reads and mutations.

Every function takes a SQLAlchemy session, validates its payload before any
write, keeps ``completed_at`` consistent with ``status`` and returns the task
as re-read from storage together with its owner summary.
"""
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..database import storage_operation
from ..errors import NotFoundError, ValidationError, details_from_pydantic
from ..models import Task, TaskStatus
from ..pagination import paginate
from ..schemas.task import (
    BulkUpdateResult,
    PaginationMeta,
    TaskCreate,
    TaskPage,
    TaskPatch,
    TaskQuery,
    TaskRead,
    TaskUpdate,
)
from ..schemas.user import TaskOwner
from .queries import active, build_count_query, build_get_query, build_list_query
from .status import derive_completed_at, toggled_status

logger = logging.getLogger(__name__)

# Fields a full update may replace.
UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date", "user_id"})

# Fields a partial or bulk update may touch; anything else in the payload is dropped.
PATCHABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date"})


def _utcnow() -> datetime:
    return datetime.utcnow()


def _to_read(task: Task, owner) -> TaskRead:
    read = TaskRead.model_validate(task)
    read.user = TaskOwner.model_validate(owner) if owner is not None else None
    return read


def _fetch(db: Session, task_id: str) -> TaskRead:
    row = db.execute(build_get_query(task_id)).first()
    if row is None:
        logger.debug("Task %s not found", task_id)
        raise NotFoundError.task(task_id)
    return _to_read(row[0], row[1])


def _fetch_active_task(db: Session, task_id: str) -> Task:
    task = db.execute(build_get_query(task_id)).scalars().first()
    if task is None:
        logger.debug("Task %s not found", task_id)
        raise NotFoundError.task(task_id)
    return task


def _allowed_changes(data: Any, allowed: frozenset) -> Dict[str, Any]:
    """Validated values for the allow-listed keys of ``data``.

    Keys outside ``allowed`` are ignored; an empty result is a validation error.
    """
    if not isinstance(data, Mapping):
        raise ValidationError.for_field("update_data", "Update data must be an object")

    candidate = {field: data[field] for field in allowed if field in data}
    if not candidate:
        raise ValidationError.for_field(
            "update_data",
            "At least one of {} must be provided".format(", ".join(sorted(allowed))),
        )

    try:
        patch = TaskPatch.model_validate(candidate)
    except PydanticValidationError as exc:
        raise ValidationError("Validation error", details=details_from_pydantic(exc.errors()))
    return patch.model_dump(include=set(candidate))


def _write(db: Session, task_id: str, values: Dict[str, Any], failure_message: str) -> None:
    """Apply ``values`` to one active task in a single UPDATE statement."""
    stmt = (
        update(Task)
        .where(Task.id == task_id, active(Task))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    with storage_operation(db, failure_message):
        result = db.execute(stmt)
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError.task(task_id)
        db.commit()


def _with_status(task: Task, changes: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    values = dict(changes)
    if "status" in values:
        values["completed_at"] = derive_completed_at(task.status, values["status"], task.completed_at, now)
    values["updated_at"] = now
    return values


def list_tasks(db: Session, criteria: TaskQuery) -> TaskPage:
    """Filtered, sorted page of tasks plus the total matching the filter."""
    with storage_operation(db, "Failed to retrieve tasks"):
        total = db.execute(build_count_query(criteria)).scalar_one()
        rows = db.execute(build_list_query(criteria)).all()

    page = paginate(criteria.page, criteria.limit, total)
    return TaskPage(
        tasks=[_to_read(task, owner) for task, owner in rows],
        total=total,
        pagination=PaginationMeta(
            current_page=criteria.page,
            total_pages=page.total_pages,
            total_items=total,
            items_per_page=criteria.limit,
            has_next_page=page.has_next,
            has_prev_page=page.has_prev,
        ),
    )


def get_task(db: Session, task_id: str) -> TaskRead:
    with storage_operation(db, "Failed to retrieve task"):
        return _fetch(db, str(task_id))


def create_task(db: Session, data: TaskCreate, now: Optional[datetime] = None) -> TaskRead:
    """Create a task; a task created as completed is stamped with its creation time."""
    title = (data.title or "").strip()
    if not title:
        raise ValidationError.for_field("title", "Title cannot be empty", data.title)

    now = now or _utcnow()
    task = Task(
        title=title,
        description=data.description,
        status=data.status,
        priority=data.priority,
        due_date=data.due_date,
        user_id=str(data.user_id) if data.user_id else None,
        completed_at=derive_completed_at(None, data.status, None, now),
        created_at=now,
        updated_at=now,
    )
    with storage_operation(db, "Failed to create task"):
        db.add(task)
        db.commit()
        logger.info("Created task %s (status=%s)", task.id, task.status.value)
        return _fetch(db, task.id)


def update_task(db: Session, task_id: str, data: TaskUpdate, now: Optional[datetime] = None) -> TaskRead:
    """Replace the supplied fields of a task; omitted fields are left as they are."""
    task_id = str(task_id)
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if field in UPDATABLE_FIELDS
    }
    if not changes:
        raise ValidationError.for_field("body", "At least one field must be provided for update")
    if "title" in changes and not (changes["title"] or "").strip():
        raise ValidationError.for_field("title", "Title cannot be empty", changes["title"])
    if "user_id" in changes and changes["user_id"] is not None:
        changes["user_id"] = str(changes["user_id"])

    now = now or _utcnow()
    with storage_operation(db, "Failed to update task"):
        task = _fetch_active_task(db, task_id)
    _write(db, task_id, _with_status(task, changes, now), "Failed to update task")
    with storage_operation(db, "Failed to update task"):
        return _fetch(db, task_id)


def patch_task(db: Session, task_id: str, data: Any, now: Optional[datetime] = None) -> TaskRead:
    """Apply the allow-listed subset of an arbitrary mapping to a task."""
    task_id = str(task_id)
    changes = _allowed_changes(data, PATCHABLE_FIELDS)

    now = now or _utcnow()
    with storage_operation(db, "Failed to update task"):
        task = _fetch_active_task(db, task_id)
    _write(db, task_id, _with_status(task, changes, now), "Failed to update task")
    with storage_operation(db, "Failed to update task"):
        return _fetch(db, task_id)


def toggle_task(db: Session, task_id: str, now: Optional[datetime] = None) -> TaskRead:
    """Flip pending <-> completed."""
    task_id = str(task_id)
    now = now or _utcnow()
    with storage_operation(db, "Failed to toggle task status"):
        task = _fetch_active_task(db, task_id)
    _write(db, task_id, toggled_status(task, now), "Failed to toggle task status")
    with storage_operation(db, "Failed to toggle task status"):
        return _fetch(db, task_id)


def delete_task(db: Session, task_id: str, now: Optional[datetime] = None) -> None:
    """Soft delete. A task that is already deleted is reported as not found."""
    task_id = str(task_id)
    now = now or _utcnow()
    _write(db, task_id, {"deleted_at": now, "updated_at": now}, "Failed to delete task")
    logger.info("Deleted task %s", task_id)


def bulk_update_tasks(
    db: Session,
    task_ids: Iterable[Any],
    update_data: Any,
    now: Optional[datetime] = None,
) -> BulkUpdateResult:
    """Apply one allow-listed update to many tasks in a single statement.

    Soft-deleted or unknown ids are skipped; ``updated_count`` is the number
    of rows actually written.
    """
    ids: List[str] = [str(task_id) for task_id in (task_ids or [])]
    if not ids:
        raise ValidationError.for_field("task_ids", "task_ids array is required and cannot be empty")
    changes = _allowed_changes(update_data, PATCHABLE_FIELDS)

    now = now or _utcnow()
    values = dict(changes)
    if "status" in values:
        if values["status"] is TaskStatus.COMPLETED:
            values["completed_at"] = func.coalesce(Task.completed_at, now)
        else:
            values["completed_at"] = None
    values["updated_at"] = now

    stmt = (
        update(Task)
        .where(Task.id.in_(ids), active(Task))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    with storage_operation(db, "Failed to bulk update tasks"):
        updated_count = db.execute(stmt).rowcount
        db.commit()

    logger.info("Bulk updated %d of %d tasks (fields=%s)", updated_count, len(ids), sorted(changes))
    return BulkUpdateResult(updated_count=updated_count, task_ids=ids)
