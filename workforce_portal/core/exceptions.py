"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class NotificationNotFoundException(NotFoundException):
    """Raised when an interaction targets a notification that does not exist."""

    def __init__(self, message: str = "Notification Not Found!"):
        super().__init__(message)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class DeliveryException(AppException):
    """Push provider rejected or failed a delivery."""

    def __init__(self, message: str = "Push delivery failed", status_code: int = 502):
        """Initialize with 502 status code."""
        super().__init__(message, status_code=status_code)


class NoDeviceTokensException(DeliveryException):
    """Nothing to deliver: no recipient has a registered device."""

    def __init__(self, message: str = "No device tokens available to push notifications"):
        super().__init__(message, status_code=422)
