"""
Core application: base classes shared by the orders and payments apps.

Nothing domain-specific lives here.

Models (import from core.models):
    - BaseModel: Abstract model with created_at / updated_at
    - UUIDPrimaryKeyMixin: UUID primary key

Services (import from core.services):
    - BaseService: Logger, transaction helper and required-field check
    - ServiceResult: Success/failure wrapper for expected refusals

Exceptions (import from core.exceptions):
    - BaseApplicationError: Error code, details and HTTP status
    - PermissionDeniedError: 403
    - ConflictError: 409

Views:
    - health_check: Database, cache and Razorpay configuration status

Note:
    Models are not re-exported here, which would import them before the
    app registry is ready.
"""

from .exceptions import BaseApplicationError, ConflictError, PermissionDeniedError
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "PermissionDeniedError",
    "ConflictError",
]
