class ApiError(Exception):
    """Business or boundary failure mapped to an HTTP status and an ``{error}`` body."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class CapacityExhausted(ApiError):
    status_code = 400
    default_message = "Parking space is not available"


class InvalidState(ApiError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"


class InvalidPricingInput(ValidationError):
    default_message = "Invalid pricing input"
