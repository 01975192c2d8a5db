"""Query Builder.

Translates a validated ``TaskQuery`` into parameterized SQLAlchemy
statements. Column names never come from the request: sort fields are looked
up in ``SORT_COLUMNS`` and filter values are always bound parameters.
"""
from typing import List, Optional

from sqlalchemy import and_, case, func, or_, select

from ..errors import ValidationError
from ..models import Task, TaskPriority, TaskStatus, User
from ..pagination import page_offset
from ..schemas.task import SortField, SortOrder, TaskQuery


def active(model):
    """Predicate selecting rows that are not soft-deleted."""
    return model.deleted_at.is_(None)


# Enum columns sort by declaration order, not alphabetically.
_STATUS_RANK = case(
    {TaskStatus.PENDING: 0, TaskStatus.COMPLETED: 1},
    value=Task.status,
)
_PRIORITY_RANK = case(
    {TaskPriority.LOW: 0, TaskPriority.MEDIUM: 1, TaskPriority.HIGH: 2},
    value=Task.priority,
)

SORT_COLUMNS = {
    SortField.TITLE: Task.title,
    SortField.STATUS: _STATUS_RANK,
    SortField.PRIORITY: _PRIORITY_RANK,
    SortField.CREATED_AT: Task.created_at,
    SortField.UPDATED_AT: Task.updated_at,
    SortField.DUE_DATE: Task.due_date,
}


def task_filters(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List:
    """Conjunctive predicate list over active tasks."""
    filters = [active(Task)]
    if status is not None:
        filters.append(Task.status == status)
    if priority is not None:
        filters.append(Task.priority == priority)
    if user_id is not None:
        filters.append(Task.user_id == str(user_id))
    if search:
        filters.append(
            or_(
                Task.title.icontains(search, autoescape=True),
                Task.description.icontains(search, autoescape=True),
            )
        )
    return filters


def filters_for(criteria: TaskQuery) -> List:
    return task_filters(
        status=criteria.status,
        priority=criteria.priority,
        user_id=criteria.user_id,
        search=criteria.search,
    )


def order_by_clause(sort_field, sort_order) -> List:
    try:
        column = SORT_COLUMNS[SortField(sort_field)]
        direction = SortOrder(sort_order)
    except (KeyError, ValueError):
        raise ValidationError(
            "Validation error",
            details=[{"field": "sort", "message": "Unsupported sort", "value": f"{sort_field} {sort_order}"}],
        )
    primary = column.asc() if direction is SortOrder.ASC else column.desc()
    return [primary, Task.id.asc()]


def select_with_owner():
    """Tasks outer-joined with their owner, skipping soft-deleted users."""
    return select(Task, User).outerjoin(User, and_(Task.user_id == User.id, active(User)))


def build_list_query(criteria: TaskQuery):
    return (
        select_with_owner()
        .where(*filters_for(criteria))
        .order_by(*order_by_clause(criteria.sort_field, criteria.sort_order))
        .offset(page_offset(criteria.page, criteria.limit))
        .limit(criteria.limit)
    )


def build_count_query(criteria: TaskQuery):
    """Total rows for the same predicate as ``build_list_query``, ignoring paging."""
    return select(func.count()).select_from(Task).where(*filters_for(criteria))


def build_get_query(task_id: str):
    return select_with_owner().where(Task.id == task_id, active(Task))
