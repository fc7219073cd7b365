# error taxonomy: http exceptions raised by routers and dependencies
# fastapi renders each as {"detail": ...} with the matching status code

from typing import Any

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """malformed or conflicting input (400)"""

    def __init__(self, detail: Any = "Invalid data"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(HTTPException):
    """missing session or bad credentials (401)"""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthorizationError(HTTPException):
    """authenticated but not permitted (403)"""

    def __init__(self, detail: str = "Not authorized to access this client"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """resource missing where absence is not hidden behind a 403 (404)"""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class StorageError(HTTPException):
    """unexpected database failure (500), detail is never leaked"""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
