"""Domain exceptions raised by services and mapped to HTTP / live-channel errors."""


class AppError(Exception):
    status_code = 500
    error_type = "internal_error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = 401
    error_type = "authentication_error"
    default_message = "Invalid or expired token"


class InvalidToken(Unauthenticated):
    """Signature, format or expiry check failed. Never says which."""


class InvalidCredentials(Unauthenticated):
    default_message = "Invalid email or password"


class Forbidden(AppError):
    status_code = 403
    error_type = "forbidden"
    default_message = "You do not have access to this resource"


class InvalidInput(AppError):
    status_code = 400
    error_type = "invalid_input"
    default_message = "Invalid input"


class InvalidParticipants(InvalidInput):
    default_message = "A conversation needs two distinct participants"


class NotFound(AppError):
    status_code = 404
    error_type = "not_found"
    default_message = "Resource not found"


class Conflict(AppError):
    # Registration surface reports duplicates as 401, matching the public contract.
    status_code = 401
    error_type = "already_exists"
    default_message = "User already exists, please log in"


class StoreUnavailable(AppError):
    status_code = 503
    error_type = "store_unavailable"
    default_message = "The data store is temporarily unavailable"
