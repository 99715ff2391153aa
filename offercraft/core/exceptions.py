"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. A stable error kind tag that callers can branch on
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages

IMPORTANT: NEVER use base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    kind: str = "internal_error"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        WHY: Context parameters allow including debugging information
        (offer_id, tenant_id, etc.) without leaking sensitive data like
        tokens or signature payloads.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "signature_data"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "kind": self.kind,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when the caller's token cannot be verified.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    kind = "authentication_error"
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """
    Raised when JWT token has expired.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when JWT token is malformed, has an invalid signature,
    or lacks the tenant claims every request needs.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token is invalid"


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    WHY: Malformed or out-of-range input (negative quantity, percent outside
    [0, 100], missing required field) should return 400 Bad Request with
    details about which field failed, helping users correct their input.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    kind = "validation_error"
    default_message = "Validation failed"


# ============================================================================
# Resource Exceptions
# ============================================================================


class NotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    WHY: A record owned by another tenant is reported exactly like a
    missing record, so tenant boundaries are never disclosed.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    kind = "not_found"
    default_message = "Resource not found"


class OfferNotFoundError(NotFoundError):
    """Raised when an offer doesn't exist in the caller's tenant."""

    default_message = "Offer not found"


class OfferVersionNotFoundError(NotFoundError):
    """Raised when a version doesn't exist for the given offer."""

    default_message = "Version not found"


class ClientNotFoundError(NotFoundError):
    """Raised when a client doesn't exist in the caller's tenant."""

    default_message = "Client not found"


class TemplateNotFoundError(NotFoundError):
    """Raised when an offer or article template doesn't exist in the caller's tenant."""

    default_message = "Template not found"


class PaymentMilestoneNotFoundError(NotFoundError):
    """Raised when a milestone doesn't belong to the given offer."""

    default_message = "Payment milestone not found"


class ConflictError(AppException):
    """
    Raised when the request conflicts with the current state of a resource.

    WHY: 409 Conflict covers double-signing an offer and exhausted retries
    on concurrently assigned sequence numbers (version or offer number).

    HTTP Status: 409 Conflict
    """

    status_code = 409
    kind = "conflict"
    default_message = "Resource state conflict"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class InvalidTransitionError(AppException):
    """
    Raised when an offer status transition is not permitted.

    WHY: The offer lifecycle is a closed state machine. Attempting an edge
    that isn't in the transition table (e.g. ACCEPTED -> SENT) fails with
    both states in the context so callers can explain the refusal.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    kind = "invalid_transition"
    default_message = "Invalid state transition"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    kind = "external_service_error"
    default_message = "External service error"


class EmailServiceError(ExternalServiceError):
    """
    Raised when email sending fails.

    WHY: Offer notifications are best-effort. The offer service catches
    this and logs it; it never rolls back the transition being reported.

    HTTP Status: 502 Bad Gateway
    """

    default_message = "Email service error"


# ============================================================================
# Persistence Exceptions
# ============================================================================


class PersistenceError(AppException):
    """
    Raised when an underlying transaction fails or is rolled back.

    WHY: Database errors are caught at the service boundary and converted
    to an application exception with a safe message (no SQL exposed).

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    kind = "persistence_error"
    default_message = "Database error"
