from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base class for failures reported through the error envelope."""

    status_code = 500
    error_type = "SERVICE_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    """Malformed or empty mutation payload. Raised before any write."""

    status_code = 400
    error_type = "VALIDATION_ERROR"

    @classmethod
    def for_field(cls, field: str, message: str, value: Any = None) -> "ValidationError":
        return cls("Validation error", details=[field_error(field, message, value)])


class NotFoundError(ServiceError):
    status_code = 404
    error_type = "NOT_FOUND"

    @classmethod
    def task(cls, task_id: str) -> "NotFoundError":
        return cls("Task not found", details=f"No task found with ID: {task_id}")


class StorageError(ServiceError):
    """Persistence failure. The driver message stays in ``details``."""

    status_code = 500
    error_type = "STORAGE_ERROR"


def field_error(field: str, message: str, value: Any = None) -> Dict[str, Any]:
    return {"field": field, "message": message, "value": value}


def details_from_pydantic(errors: List[Dict[str, Any]], prefix: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten pydantic error dicts into ``{field, message, value}`` entries."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        if prefix:
            loc.insert(0, prefix)
        value = error.get("input")
        if isinstance(value, dict):
            value = None
        details.append(field_error(".".join(loc), error.get("msg", "Invalid value"), value))
    return details
