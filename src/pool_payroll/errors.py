"""Domain errors raised by the payroll core."""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all domain errors."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ValidationError(PayrollError):
    """Required field missing or invalid. Nothing was written."""

    code = "VALIDATION_ERROR"


class StateConflictError(PayrollError):
    """Operation not allowed in the current state of a pay period."""

    code = "STATE_CONFLICT"


class NotFoundError(PayrollError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )


class DataAccessError(PayrollError):
    """Persistence operation timed out or failed to reach the database."""

    code = "DATA_ACCESS_ERROR"
