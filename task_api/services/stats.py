"""Statistics Aggregator."""
import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from ..database import storage_operation
from ..models import Task, TaskPriority, TaskStatus
from ..schemas.task import TaskStats
from .queries import task_filters

logger = logging.getLogger(__name__)


def _count_where(condition):
    return func.count(case((condition, 1)))


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded half up; 0 for an empty set."""
    if total <= 0:
        return 0
    return int(math.floor(completed / total * 100 + 0.5))


def get_task_stats(db: Session, user_id: Optional[str] = None, now: Optional[datetime] = None) -> TaskStats:
    """Counts over active tasks, optionally scoped to one user.

    All figures come from one aggregate SELECT, so they describe the same
    snapshot.
    """
    now = now or datetime.utcnow()
    stmt = select(
        func.count(),
        _count_where(Task.status == TaskStatus.PENDING),
        _count_where(Task.status == TaskStatus.COMPLETED),
        _count_where(Task.priority == TaskPriority.LOW),
        _count_where(Task.priority == TaskPriority.MEDIUM),
        _count_where(Task.priority == TaskPriority.HIGH),
        _count_where(and_(Task.status == TaskStatus.PENDING, Task.due_date < now)),
    ).select_from(Task).where(*task_filters(user_id=user_id))

    with storage_operation(db, "Failed to retrieve task statistics"):
        total, pending, completed, low, medium, high, overdue = db.execute(stmt).one()

    logger.debug("Stats for user=%s: total=%d completed=%d", user_id, total, completed)
    return TaskStats(
        total_tasks=total,
        pending_tasks=pending,
        completed_tasks=completed,
        low_priority_tasks=low,
        medium_priority_tasks=medium,
        high_priority_tasks=high,
        overdue_tasks=overdue,
        completion_rate=completion_rate(completed, total),
    )
