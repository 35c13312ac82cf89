"""Custom exception classes."""

from fastapi import status


class CabBookingException(Exception):
    """Base exception for the RideWise scoring service."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(CabBookingException):
    """Input is malformed or outside the domain of a scoring function."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)


class NotFoundError(CabBookingException):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ExternalServiceError(CabBookingException):
    """External service (directions provider) error."""

    def __init__(self, message: str = "External service unavailable"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
