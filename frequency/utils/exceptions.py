class FrequencyException(Exception):
    """Base exception for the application"""
    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(FrequencyException):
    """A required field is missing or malformed"""
    status_code = 400
    message = "Invalid input"


class NotAuthenticated(FrequencyException):
    """The operation needs a signed-in identity and none is present"""
    status_code = 401
    message = "Not authenticated"


class AuthorizationError(FrequencyException):
    """Authorization related errors"""
    status_code = 403
    message = "Not allowed"


class NotFoundError(FrequencyException):
    """Resource not found errors"""
    status_code = 404
    message = "Not found"


class ConflictError(FrequencyException):
    """Uniqueness violation on the store"""
    status_code = 409
    message = "Already exists"


class DuplicateEdgeError(ConflictError):
    message = "Friend request already sent"


class DuplicateTrackError(ConflictError):
    message = "Track already in playlist"


class AlreadySharedError(ConflictError):
    message = "Already shared with this user"


class StoreError(FrequencyException):
    """Any other backend failure, network or server side"""
    status_code = 503
    message = "Store unavailable"


_STATUS_TO_EXCEPTION = {
    400: ValidationError,
    401: NotAuthenticated,
    403: AuthorizationError,
    404: NotFoundError,
    422: ValidationError,
    409: ConflictError,
}


def exception_for_status(status_code: int, message: str = None) -> FrequencyException:
    """Rebuild the exception a response status stands for"""
    exc_class = _STATUS_TO_EXCEPTION.get(status_code, StoreError)
    if exc_class is ConflictError and message:
        for conflict_class in (DuplicateEdgeError, DuplicateTrackError, AlreadySharedError):
            if message == conflict_class.message:
                exc_class = conflict_class
                break
    return exc_class(message)
