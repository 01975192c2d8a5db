from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Enum as SAEnum, Text
from datetime import datetime
from typing import Optional
from uuid import uuid4
import enum


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Timestamps are naive UTC in plain DateTime columns.
class Task(SQLModel, table=True):
    """Task model.

    ``completed_at`` is non-null exactly when ``status`` is completed; it is
    only ever written by the mutation engine. A non-null ``deleted_at`` marks
    a soft-deleted row.
    """
    __tablename__ = "tasks"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        sa_column=Column(
            SAEnum(TaskStatus, name="task_status", values_callable=_enum_values),
            nullable=False,
            default=TaskStatus.PENDING,
        ),
    )
    priority: TaskPriority = Field(
        default=TaskPriority.MEDIUM,
        sa_column=Column(
            SAEnum(TaskPriority, name="task_priority", values_callable=_enum_values),
            nullable=False,
            default=TaskPriority.MEDIUM,
        ),
    )
    due_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    user_id: Optional[str] = Field(
        default=None,
        foreign_key="users.id",
        ondelete="SET NULL",
        nullable=True,
        index=True,
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    deleted_at: Optional[datetime] = Field(default=None, index=True, sa_type=DateTime)
