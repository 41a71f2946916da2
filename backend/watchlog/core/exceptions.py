from fastapi import status

class BaseAppException(Exception):
    """Base exception for application"""
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class ValidationException(BaseAppException):
    """Raised when a request is malformed or out of range"""
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class SharingInvariantViolation(BaseAppException):
    """Raised when an (is_private, group_ids) pair breaks the sharing rules"""
    error_code = "SHARING_INVARIANT_VIOLATION"

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

    @property
    def reason(self) -> str:
        return self.message

class MissingGroupsException(SharingInvariantViolation):
    """Raised when a shared watch names no group"""
    error_code = "MISSING_GROUPS"

    def __init__(self):
        super().__init__("MissingGroups")

class ForeignGroupException(SharingInvariantViolation):
    """Raised when a watch is shared with a group the owner does not belong to"""
    error_code = "FOREIGN_GROUP"

    def __init__(self, group_id: int):
        self.group_id = group_id
        super().__init__(f"ForeignGroup:{group_id}")

class WatchNotFoundException(BaseAppException):
    """Raised when a watch does not exist or belongs to someone else"""
    error_code = "WATCH_NOT_FOUND"

    def __init__(self, message: str = "Watch not found or not owned"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)

class MovieNotFoundException(BaseAppException):
    """Raised when the catalog has no movie for an id"""
    error_code = "MOVIE_NOT_FOUND"

    def __init__(self, message: str = "Movie not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)

class CatalogUnavailableException(BaseAppException):
    """Raised when the movie catalog cannot be reached"""
    error_code = "CATALOG_UNAVAILABLE"

    def __init__(self, message: str = "Movie catalog unavailable"):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)
