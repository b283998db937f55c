"""
Domain errors raised by stockdb services.

Every error is an ``HTTPException`` so services can raise it directly and
FastAPI renders it without extra handlers. Each class carries a stable
``code`` for clients and tests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class StockDBError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, *, detail: Any = None) -> None:
        self.message = message
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else {"code": self.code, "message": message},
        )

    def __str__(self) -> str:
        return self.message


class InvalidQuantity(StockDBError):
    code = "invalid_quantity"


class ValidationFailed(StockDBError):
    code = "validation_failed"


class NotFound(StockDBError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PermissionDenied(StockDBError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"


class NotDeletable(StockDBError):
    status_code = status.HTTP_409_CONFLICT
    code = "not_deletable"


class InsufficientStock(StockDBError):
    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_stock"

    def __init__(self, *, available: int, requested: int) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            detail={
                "code": self.code,
                "message": f"Insufficient stock. Available: {available}, Requested: {requested}",
                "available": available,
                "requested": requested,
            },
        )


class DependencyConflict(StockDBError):
    status_code = status.HTTP_409_CONFLICT
    code = "dependency_conflict"

    def __init__(self, message: str, *, dependency_type: str, dependency_count: int) -> None:
        self.dependency_type = dependency_type
        self.dependency_count = dependency_count
        super().__init__(
            message,
            detail={
                "code": self.code,
                "message": message,
                "dependency_type": dependency_type,
                "dependency_count": dependency_count,
            },
        )


class InvalidTransition(StockDBError):
    """
    Raised by the workflow engine. ``reason_code`` distinguishes an illegal
    move (``invalid_transition``) from failed guards (``missing_requirements``)
    and edits against a closed session (``session_locked``).
    """

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"

    def __init__(
        self,
        message: str,
        *,
        reason_code: str = "invalid_transition",
        problems: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        self.reason_code = reason_code
        self.problems = problems or []
        super().__init__(
            message,
            detail={
                "code": reason_code,
                "message": message,
                "problems": self.problems,
            },
        )
