"""
Custom Exceptions

Centralized exception definitions. FastAPI converts these to HTTP
responses; main.py adds the "type" field to the body.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Base for "entity not found" errors."""

    entity = "Resource"

    def __init__(self, identifier: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{self.entity} not found: {identifier}" if identifier else f"{self.entity} not found"
        )


class TenantNotFoundError(NotFoundError):
    entity = "Tenant"


class UserNotFoundError(NotFoundError):
    entity = "User"


class RoleNotFoundError(NotFoundError):
    entity = "Role"


class EventNotFoundError(NotFoundError):
    entity = "Event"


class ProjectNotFoundError(NotFoundError):
    entity = "Project"


class ImageNotFoundError(NotFoundError):
    entity = "Image"


class FinanceNotFoundError(NotFoundError):
    entity = "Project finance"


class AuthenticationError(HTTPException):
    """
    Raised when authentication fails.

    The client always sees the same detail; callers log the real reason.
    Bad credentials, bad tokens, stale token versions and inactive tenants
    must not be distinguishable from the outside.
    """

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    """Valid session, insufficient role."""

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class TenantIsolationError(HTTPException):
    """
    Raised when a caller touches another tenant's data.

    This is a security event and is always logged.
    """

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class ConflictError(HTTPException):
    """Raised on uniqueness violations (duplicate email, role name...)."""

    def __init__(self, detail: str = "Already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class InvalidInputError(HTTPException):
    """Raised when a request is well-formed but not acceptable."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class RateLimitExceeded(HTTPException):
    """Raised when rate limit is exceeded."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)}
        )
