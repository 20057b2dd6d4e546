"""
Base exception classes for domain errors.

Every domain error carries a machine-readable error code and the HTTP
status an API view answers with, so views render any of them the same
way.

Exception Hierarchy:
    BaseApplicationError (400)
    ├── PermissionDeniedError - Caller does not own the resource (403)
    ├── ConflictError - Operation conflicts with current state (409)
    └── payments.exceptions.PaymentError - Razorpay payment errors

Usage:
    from core.exceptions import BaseApplicationError, ConflictError

    raise ConflictError(
        "Order is not reserved",
        error_code="INVALID_ORDER_STATE",
        details={"order_short_id": "o_abc123", "status": "COMPLETED"},
    )

    # In a view
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    DRF handles API-layer errors (serializer validation, authentication).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for application errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional context (identifiers, expected/actual values)
        status_code: HTTP status an API view should answer with

    Subclasses set default_error_code and status_code.
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Render as an API error body.

        Example:
            {
                "error": "Order not found",
                "error_code": "ORDER_NOT_FOUND",
                "details": {"order_short_id": "o_abc123"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller may not act on a resource.

    Example:
        if order.session_id != session_id:
            raise PermissionDeniedError(
                "Checkout session does not own this order",
                error_code="SESSION_MISMATCH",
            )

    Note:
        Missing or invalid credentials are DRF's NotAuthenticated, not this.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the current resource state.

    Use for:
    - Orders outside the state an operation needs
    - Identifiers that do not match the stored binding
    - Contended locks

    A conflict does not succeed on retry unless the state changes first.
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409
