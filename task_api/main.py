import logging
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import APP_NAME, APP_VERSION, CORS_ORIGINS, DEBUG, ENVIRONMENT, LOG_FILE, LOG_LEVEL
from .database import create_tables
from .errors import ServiceError, StorageError, details_from_pydantic
from .logging_setup import setup_logging
from .schemas.task import ErrorBody, ErrorResponse
from .routers import tasks

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Task management API with filtering, pagination, statistics and bulk updates",
    version=APP_VERSION,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tasks.router, prefix="/api", tags=["tasks"])


def _error_response(status_code: int, message: str, error_type: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorBody(message=message, type=error_type, details=details),
        ).model_dump(mode="json"),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    details = exc.details
    if isinstance(exc, StorageError) and not DEBUG:
        details = None
    return _error_response(exc.status_code, exc.message, exc.error_type, details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        "VALIDATION_ERROR",
        details_from_pydantic(list(exc.errors())),
    )


# Configure logging and create tables on startup
@app.on_event("startup")
def on_startup():
    setup_logging(LOG_LEVEL, LOG_FILE)
    create_tables()
    logger.info("%s %s started (environment=%s)", APP_NAME, APP_VERSION, ENVIRONMENT)


@app.get("/")
def read_root():
    return {
        "success": True,
        "message": f"Welcome to {APP_NAME}",
        "version": APP_VERSION,
        "endpoints": {"health": "/api/health", "info": "/api/info", "tasks": "/api/tasks"},
    }


@app.get("/health")
@app.get("/api/health")
def health_check():
    return {
        "success": True,
        "status": "healthy",
        "environment": ENVIRONMENT,
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/api/info")
def api_info():
    return {
        "success": True,
        "data": {
            "name": APP_NAME,
            "version": APP_VERSION,
            "endpoints": {
                "GET /api/tasks": "Get all tasks with filtering and pagination",
                "POST /api/tasks": "Create new task",
                "GET /api/tasks/{id}": "Get task by ID",
                "PUT /api/tasks/{id}": "Update task",
                "PATCH /api/tasks/{id}": "Partially update task",
                "DELETE /api/tasks/{id}": "Delete task",
                "PATCH /api/tasks/{id}/toggle": "Toggle task status",
                "GET /api/tasks/stats": "Get task statistics",
                "PATCH /api/tasks/bulk": "Bulk update tasks",
            },
        },
    }
