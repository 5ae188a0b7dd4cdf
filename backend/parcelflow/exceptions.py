"""
ParcelFlow Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per failure class of the API.
How:   Each exception carries a message, an optional context dict, and the
       HTTP status / machine-readable code its global handler responds with.
Who:   Raised by services, repositories and the authorization gate; caught by
       the handlers registered in main.py.

Exception Hierarchy:
    ParcelFlowError (base)
    ├── ValidationError         → 400 Bad Request (missing/invalid input)
    ├── UnauthorizedError       → 401 Unauthorized (no/invalid credential)
    ├── ForbiddenError          → 403 Forbidden (insufficient role)
    ├── NotFoundError           → 404 Not Found (entity absent / precondition unmet)
    ├── ConflictError           → 409 Conflict (duplicate cashout, already picked)
    ├── RateLimitExceededError  → 429 Too Many Requests
    ├── DatabaseError           → 500 Internal Server Error
    ├── PaymentGatewayError     → 500 Internal Server Error (no retry)
    └── IdentityServiceError    → 503 Service Unavailable (token verifier down)
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ParcelFlowError(Exception):
    """
    Base exception for all ParcelFlow application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only by selected handlers)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ParcelFlowError):
    """
    Raised when client input is missing or fails a business rule.

    When:    Required payment fields absent, cashout listing without rider email,
             unknown status value, non-positive payment amount.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(ParcelFlowError):
    """
    Raised when the bearer credential is missing, malformed or rejected.

    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(ParcelFlowError):
    """
    Raised when an authenticated caller lacks the role or ownership required.

    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ParcelFlowError):
    """
    Raised when a referenced entity does not exist, or exists but not in the
    shape the operation requires (e.g. a parcel not assigned to the caller).

    HTTP:    404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ParcelFlowError):
    """
    Raised when a write lost against the entity's current state.

    When:    A conditional update matched zero rows (parcel already picked,
             delivered, paid; rider already reviewed) or a unique constraint
             rejected a duplicate ledger row (second cashout for a parcel).
    HTTP:    409 Conflict
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ParcelFlowError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(ParcelFlowError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic; the context
        (exception type, entity id) is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentGatewayError(ParcelFlowError):
    """
    Raised when the card-payment gateway rejects or fails a request.

    The call is not retried; the client decides whether to try again.
    HTTP:    500 Internal Server Error
    """

    status_code = 500
    error_code = "payment_gateway_error"

    def __init__(
        self,
        message: str = "Could not create the payment intent. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityServiceError(ParcelFlowError):
    """
    Raised when the token verifier cannot reach its signing-key source after
    all retries. Distinct from UnauthorizedError: the credential may be fine.

    HTTP:    503 Service Unavailable
    """

    status_code = 503
    error_code = "identity_service_unavailable"

    def __init__(
        self,
        message: str = "Identity verification is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ── Translation helper ────────────────────────────────────────────────────

@contextmanager
def database_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Wraps a block of repository calls: SQLAlchemy failures become
    DatabaseError (generic message to the client, details in the log).
    ParcelFlowError subclasses raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e
