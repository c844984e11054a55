"""
Typed errors raised by the lifecycle engines, the orchestrator and the service layer.

Every error carries a machine-readable ``code``, a message that names the failed
condition, and structured ``details``. The API layer maps each class to one HTTP status.
"""
from __future__ import annotations

from typing import Any


class LifecycleError(Exception):
    """Base class for all classified lifecycle failures."""

    code: str = "LIFECYCLE_ERROR"
    http_status: int = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotFound(LifecycleError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(LifecycleError):
    code = "INVALID_TRANSITION"
    http_status = 409

    def __init__(self, entity: str, from_status: Any, attempted: str, message: str | None = None) -> None:
        from_value = getattr(from_status, "value", from_status)
        super().__init__(
            message or f"cannot {attempted} a {from_value} {entity.lower()}",
            entity=entity,
            from_status=from_value,
            attempted=attempted,
        )
        self.entity = entity
        self.from_status = from_value
        self.attempted = attempted


class PreconditionFailed(LifecycleError):
    code = "PRECONDITION_FAILED"
    http_status = 409

    def __init__(self, reason: str, **details: Any) -> None:
        super().__init__(reason, **details)
        self.reason = reason


class ValidationFailed(LifecycleError):
    code = "VALIDATION_FAILED"
    http_status = 422

    def __init__(self, fields: dict[str, str]) -> None:
        summary = "; ".join(f"{k}: {v}" for k, v in fields.items())
        super().__init__(f"invalid input ({summary})", fields=fields)
        self.fields = fields


class AuthorizationError(LifecycleError):
    code = "FORBIDDEN"
    http_status = 403


class ConcurrencyConflict(LifecycleError):
    code = "CONCURRENT_MODIFICATION"
    http_status = 409

    def __init__(self, entity: str, entity_id: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(
            f"{entity} {entity_id} was modified by another request; reload and retry",
            entity=entity,
            entity_id=entity_id,
            expected_version=expected,
            actual_version=actual,
        )


class ExternalServiceError(LifecycleError):
    code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502

    def __init__(self, service: str, operation: str, cause: BaseException | None = None) -> None:
        super().__init__(
            f"{service} failed during {operation}",
            service=service,
            operation=operation,
            cause=str(cause) if cause is not None else None,
        )
        self.service = service
        self.operation = operation
