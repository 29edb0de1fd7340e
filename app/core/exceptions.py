from typing import Optional, Any


class OrderDeskError(Exception):
    """
    Base exception for the OrderDesk application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(OrderDeskError):
    """
    Raised when input fails a business rule the client can correct.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class ConflictError(OrderDeskError):
    """
    Raised when a unique value (email, category name, ...) is already taken.
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE", status_code=400, details=details)


class AuthenticationError(OrderDeskError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class InvalidTokenError(OrderDeskError):
    """
    Raised when a bearer token cannot be verified or has expired.
    """
    def __init__(self, message: str = "Invalid or expired token", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_TOKEN", status_code=403, details=details)


class PermissionDeniedError(OrderDeskError):
    """
    Raised when the caller's role does not allow the operation.
    """
    def __init__(self, message: str = "Access denied", details: Optional[Any] = None):
        super().__init__(message, code="FORBIDDEN", status_code=403, details=details)


class ResourceNotFoundError(OrderDeskError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class ExternalServiceError(OrderDeskError):
    """
    Raised when an external service (image host) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)
