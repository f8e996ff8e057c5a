from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "SERVICE_ERROR"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(ServiceError):
    code = "VALIDATION"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFound(ServiceError):
    code = "NOT_FOUND"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class AlreadyExists(ServiceError):
    code = "ALREADY_EXISTS"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class AlreadyEnrolled(AlreadyExists):
    code = "ALREADY_ENROLLED"

    def __init__(self, message: str = "You are already enrolled in this class") -> None:
        super().__init__(message)


class Forbidden(ServiceError):
    """Policy denial. The message never says which rule failed."""

    code = "FORBIDDEN"

    def __init__(self) -> None:
        super().__init__("Insufficient permissions", status.HTTP_403_FORBIDDEN)


class Conflict(ServiceError):
    code = "CONFLICT"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class StorageFailure(ServiceError):
    code = "STORAGE_FAILURE"

    def __init__(self) -> None:
        super().__init__("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
