from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BookingValidationError(ServiceError):
    """A required field is missing or malformed."""

    def __init__(self, message: str = "Missing required fields") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class Unauthenticated(ServiceError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class NotFound(ServiceError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class TeacherNotFound(NotFound):
    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class CommonNotFound(NotFound):
    def __init__(self, message: str = "Common not found") -> None:
        super().__init__(message)


class RoomNotFound(NotFound):
    def __init__(self, message: str = "Room not found") -> None:
        super().__init__(message)


class SubjectNotFound(NotFound):
    def __init__(self, message: str = "Subject not found") -> None:
        super().__init__(message)


class SlotConflict(ServiceError):
    """Unique (room, date, period) violation on booking insert."""

    def __init__(self, message: str = "This room is already booked for that date and period") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class UpstreamFailure(ServiceError):
    """Storage or identity-provider call failed for any other reason."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
