# teamboard/core/exceptions.py

class BaseAppException(Exception):
    """Base class for all application errors; status_code drives the HTTP mapping."""
    status_code = 500

    def __init__(self, message: str = "App exception"):
        super().__init__(message)
        self.message = message

# ==== Validation ====

class ValidationError(BaseAppException):
    """Missing or malformed input."""
    status_code = 400

    def __init__(self, message: str = "Validation error"):
        super().__init__(message)

# ==== Auth ====

class AuthError(BaseAppException):
    """Missing, invalid or expired credentials."""
    status_code = 401

    INVALID_SIGNATURE = "invalid-signature"
    EXPIRED = "expired"
    MALFORMED = "malformed"

    def __init__(self, message: str = "Not authorized to access this route", reason: str | None = None):
        super().__init__(message)
        self.reason = reason

class ForbiddenError(BaseAppException):
    """Authenticated, but not allowed to perform the action."""
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)

# ==== NotFound ====

class NotFoundError(BaseAppException):
    """Entity id does not resolve."""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class TeamNotFound(NotFoundError):
    def __init__(self, message: str = "Team not found"):
        super().__init__(message)

class TaskNotFound(NotFoundError):
    def __init__(self, message: str = "Task not found"):
        super().__init__(message)

# ==== Conflicts ====

class ConflictError(BaseAppException):
    """Duplicate membership, duplicate email and similar uniqueness violations."""
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

class EmailAlreadyRegistered(ConflictError):
    """Registration and profile updates report a taken email as a bad request."""
    status_code = 400

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message)
