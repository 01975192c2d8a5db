"""Status transitions.

Every write path derives ``completed_at`` through ``derive_completed_at`` so a
completed task always carries a completion time and a pending one never does.
The helpers below take a task value and ``now`` and return the field diff to
write; they never mutate the task.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from ..models import Task, TaskStatus


def derive_completed_at(
    old_status: Optional[TaskStatus],
    new_status: TaskStatus,
    old_completed_at: Optional[datetime],
    now: datetime,
) -> Optional[datetime]:
    if TaskStatus(new_status) is TaskStatus.COMPLETED:
        # Keep the original completion time when the task was already completed.
        if old_status is not None and TaskStatus(old_status) is TaskStatus.COMPLETED and old_completed_at:
            return old_completed_at
        return now
    return None


def status_changes(task: Task, new_status: TaskStatus, now: datetime) -> Dict[str, Any]:
    """Diff moving ``task`` to ``new_status``."""
    return {
        "status": TaskStatus(new_status),
        "completed_at": derive_completed_at(task.status, new_status, task.completed_at, now),
        "updated_at": now,
    }


def mark_completed(task: Task, now: datetime) -> Dict[str, Any]:
    return status_changes(task, TaskStatus.COMPLETED, now)


def mark_pending(task: Task, now: datetime) -> Dict[str, Any]:
    return status_changes(task, TaskStatus.PENDING, now)


def toggled_status(task: Task, now: datetime) -> Dict[str, Any]:
    """Diff flipping pending <-> completed."""
    if TaskStatus(task.status) is TaskStatus.PENDING:
        return mark_completed(task, now)
    return mark_pending(task, now)
