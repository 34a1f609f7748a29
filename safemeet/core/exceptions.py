from typing import Optional

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Raised when resource not found"""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ServiceUnavailableError(HTTPException):
    """Raised when an optional collaborator is not configured"""
    def __init__(self, detail: str = "Service unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class InfrastructureError(HTTPException):
    """Raised when the store or an external provider fails.

    ``error`` and ``code`` are only rendered to clients in debug mode.
    """
    def __init__(
        self,
        detail: str = "Internal server error",
        error: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
        self.error = error
        self.code = code


class ServiceError(Exception):
    """Base error for service-layer failures"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailableError(ServiceError):
    """Identity store unreachable or timed out (retryable)"""
    pass


class RecipientNotFound(ServiceError):
    """No identity record or no delivery token for the recipient"""
    pass
