"""
Service layer base classes.

- ServiceResult: Result wrapper for outcomes a caller is expected to branch on
- BaseService: Per-class logger, transaction helper and input checks

Services hold the business logic. Views translate HTTP into service calls
and service results or exceptions back into responses.

When to return a result and when to raise:
    - ServiceResult.failure: expected refusals the caller reports as data
      (refund not eligible, webhook event not applicable)
    - Exceptions (core.exceptions, payments.exceptions): hard gates and
      faults that abort the operation (signature failure, unknown order,
      gateway outage, lock contention)

Usage:
    from core.services import BaseService, ServiceResult

    class RefundService(BaseService):
        @classmethod
        def create_refund(cls, order_id, amount) -> ServiceResult[RefundOutcome]:
            eligibility = cls.check_refund_eligibility(order, binding)
            if not eligibility.eligible:
                return ServiceResult.failure(
                    eligibility.block_reason,
                    error_code=eligibility.block_code,
                )

            with cls.atomic():
                ...

            cls.get_logger().info("Refund created", extra={"order_id": str(order_id)})
            return ServiceResult.success(outcome)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Human-readable reason if failed
        error_code: Machine-readable code, e.g. "ALREADY_FULLY_REFUNDED"
        errors: Field-level errors for input validation failures

    Usage:
        result = RefundService.create_refund(order.id, 2500)
        if result:
            return Response(RefundOutcomeSerializer(result.data).data)
        return Response(
            {"error": result.error, "error_code": result.error_code},
            status=400,
        )
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure(
                "Refund amount must be at least 100 minor units",
                error_code="REFUND_AMOUNT_BELOW_MINIMUM",
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless services.

    Services expose classmethods only. Collaborators that tests replace
    (the Razorpay adapter) are held as class attributes with a setter.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the service class, e.g. payments.services.refund_service.RefundService."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Run the block in a database transaction.

        Example:
            with cls.atomic():
                order = Order.objects.select_for_update().get(pk=order_id)
                binding = PaymentBinding.objects.select_for_update().get(order=order)
                # Both rows stay locked until the block exits
        """
        with transaction.atomic():
            yield

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Check that every keyword argument is present and not blank.

        Returns None when all are present, otherwise a VALIDATION_ERROR
        failure listing each missing field.

        Example:
            validation = cls.validate_required(payment_id=payment_id, signature=signature)
            if validation is not None:
                return validation
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
