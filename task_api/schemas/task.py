from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar
from uuid import UUID

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..models import TaskPriority, TaskStatus
from .user import TaskOwner

T = TypeVar("T")


class SortField(str, Enum):
    TITLE = "title"
    STATUS = "status"
    PRIORITY = "priority"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DUE_DATE = "due_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _check_due_date(value: Optional[datetime]) -> Optional[datetime]:
    value = _to_naive_utc(value)
    if value is not None and value < datetime.utcnow():
        raise ValueError("Due date cannot be in the past")
    return value


def _strip(value: Any) -> Any:
    """Drop angle brackets and surrounding whitespace from text input."""
    if isinstance(value, str):
        return value.replace("<", "").replace(">", "").strip()
    return value


class TaskFields(BaseModel):
    """Shared validation for writable task fields."""

    @field_validator("title", "description", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("due_date", check_fields=False)
    @classmethod
    def due_date_not_past(cls, value):
        return _check_due_date(value)


class TaskCreate(TaskFields):
    """Schema for creating new tasks."""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    user_id: Optional[UUID] = None


class TaskUpdate(TaskFields):
    """Schema for full updates: any field may be replaced, omitted ones are kept."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    user_id: Optional[UUID] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class TaskPatch(TaskFields):
    """Type check for the allow-listed values of a partial or bulk update."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class TaskQuery(BaseModel):
    """Filter, search, sort and page selection for task listings."""
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    user_id: Optional[UUID] = None
    search: Optional[str] = Field(default=None, max_length=255)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @field_validator("search", mode="before")
    @classmethod
    def blank_search_is_none(cls, value):
        value = _strip(value)
        return value or None

    @field_validator("sort_order", mode="before")
    @classmethod
    def lower_sort_order(cls, value):
        return value.lower() if isinstance(value, str) else value


class BulkUpdateRequest(BaseModel):
    task_ids: List[UUID]
    update_data: Any = None


class TaskRead(BaseModel):
    """Task as returned to clients, with its owner summary."""
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[TaskOwner] = None

    class Config:
        from_attributes = True


class PaginationMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class TaskPage(BaseModel):
    tasks: List[TaskRead]
    total: int
    pagination: PaginationMeta


class TaskPayload(BaseModel):
    task: TaskRead


class TaskStats(BaseModel):
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    low_priority_tasks: int
    medium_priority_tasks: int
    high_priority_tasks: int
    overdue_tasks: int
    completion_rate: int


class StatsPayload(BaseModel):
    statistics: TaskStats


class BulkUpdateResult(BaseModel):
    updated_count: int
    task_ids: List[str]


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""
    success: bool = True
    data: Optional[T] = None
    message: str


class ErrorBody(BaseModel):
    message: str
    type: str
    details: Any = None


class ErrorResponse(BaseModel):
    """Failure envelope."""
    success: bool = False
    error: ErrorBody
