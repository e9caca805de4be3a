from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(AppError):
    """Raised when input is missing or malformed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class AuthorizationError(AppError):
    """Raised when the caller has the wrong role or does not own the resource."""
    def __init__(self, message: str = "Forbidden", details: dict = None):
        super().__init__(message, status_code=403, details=details)

class NotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str | None = None):
        if resource_id is None:
            message = f"{resource_type} not found"
        else:
            message = f"{resource_type} with id {resource_id} not found"
        super().__init__(message, status_code=404)

class ConflictError(AppError):
    """Raised when a state transition is not allowed from the current state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ServerError(AppError):
    """Raised when persistence fails; the caller only sees the generic message."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)

class PayloadTooLargeError(AppError):
    """Raised when a request body exceeds the configured size limit."""
    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Request body too large ({size} bytes). Maximum allowed is {limit} bytes.",
            status_code=413,
            details={"size": size, "limit": limit},
        )


def error_response(exc: AppError, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "details": exc.details},
        headers=headers,
    )
