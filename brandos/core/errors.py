"""
Domain errors

Services raise these; the API layer renders them with a single exception
handler so status codes stay consistent across routers.
"""

from typing import Optional
from fastapi import status


class BrandOSError(Exception):
    """Base class for all domain errors"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ERROR"
    retryable: bool = False

    def __init__(self, message: str = "", *, retry_after: Optional[int] = None):
        self.message = message or (self.__class__.__doc__ or "").strip()
        self.retry_after = retry_after
        super().__init__(self.message)


class InvalidCredentialsError(BrandOSError):
    """Invalid credentials"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"

    def __init__(self, reason: str = "unknown"):
        # The reason is for audit logging only, never for the caller
        super().__init__("Invalid credentials")
        self.reason = reason


class AuthenticationError(BrandOSError):
    """Could not validate credentials"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"


class ForbiddenError(BrandOSError):
    """Forbidden"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(BrandOSError):
    """Resource not found"""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(BrandOSError):
    """Resource already exists"""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class TenantNameConflictError(ConflictError):
    """Tenant name already registered"""

    code = "TENANT_NAME_CONFLICT"


class ValidationError(BrandOSError):
    """Invalid input"""

    status_code = 422
    code = "VALIDATION_ERROR"


class ProvisioningError(BrandOSError):
    """Tenant provisioning failed, please retry"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PROVISIONING_FAILED"
    retryable = True


class PartitionUnavailableError(BrandOSError):
    """Tenant partition temporarily unavailable"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PARTITION_UNAVAILABLE"
    retryable = True
