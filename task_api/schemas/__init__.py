from .task import (
    ApiResponse,
    BulkUpdateRequest,
    BulkUpdateResult,
    ErrorResponse,
    PaginationMeta,
    SortField,
    SortOrder,
    StatsPayload,
    TaskCreate,
    TaskPage,
    TaskPatch,
    TaskPayload,
    TaskQuery,
    TaskRead,
    TaskStats,
    TaskUpdate,
)
from .user import TaskOwner, UserCreate, UserRead
