class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationFailedError(AppError):
    """Raised when required identifiers are missing or contradict each other."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ConflictError(AppError):
    """Raised when a write would break a scheduling invariant (locked cell, double booking, duplicate)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class UnprocessableError(AppError):
    """Raised when a teacher is not eligible for the requested subject and class-section."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
