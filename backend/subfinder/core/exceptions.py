class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class NotFoundError(AppError):
    """Raised when an entity id does not resolve."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ValidationError(AppError):
    """Raised for malformed input: bad time ranges, dangling references, unknown enum values."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class InvalidTransition(AppError):
    """Raised when a request lifecycle event is not allowed from the current state."""
    def __init__(self, request_id: str, current_status: str, event: str):
        super().__init__(
            f"Cannot {event} a request that is {current_status}",
            status_code=409,
            details={"request_id": request_id, "status": current_status, "event": event},
        )

class PersistenceError(AppError):
    """Raised when the storage layer fails (lock timeout, I/O, schema problems)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)

class AuthError(AppError):
    """Raised on credential mismatch. The message never says which part was wrong."""
    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message, status_code=401)

class NotificationDeliveryError(AppError):
    """Raised by a notification channel when a single delivery fails."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)
