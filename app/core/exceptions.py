from fastapi import HTTPException, status


class AppException:
    """Class-based exception handlers for common HTTP status codes."""

    @staticmethod
    def raise_400(message: str = "Bad Request"):
        """Raise a 400 Bad Request exception."""
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    @staticmethod
    def raise_401(message: str = "Unauthorized"):
        """Raise a 401 Unauthorized exception."""
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)

    @staticmethod
    def raise_403(message: str = "Forbidden"):
        """Raise a 403 Forbidden exception."""
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# ============================================================
# Domain errors raised by services and rule modules.
# Rendered as {"message": ...} by the handler in app.main.
# ============================================================

class DomainError(Exception):
    """Base class for business-rule failures. Carries the HTTP status used at the boundary."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or out-of-range input; raised before any mutation."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StateConflictError(DomainError):
    """Operation is not valid for the entity's current status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


class ConcurrencyConflictError(StateConflictError):
    """Another request modified the same record first; the caller may resubmit."""
    status_code = status.HTTP_409_CONFLICT
    default_message = "The record was modified by another request. Please retry."


class AuthorizationError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class InsufficientFundsError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Insufficient funds"


class InternalError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
