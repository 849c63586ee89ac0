# src/exceptions.py
from fastapi import HTTPException, status


class FeedError(HTTPException):
    """Base class for errors surfaced to API clients."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Server error"

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail, headers=headers)


class ValidationError(FeedError):
    """Malformed or missing input the client can correct."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class AuthError(FeedError):
    """Acting identity is missing or cannot be resolved."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: str = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(FeedError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Post not found"


class ConflictError(FeedError):
    """The document changed between read and write."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Post was modified by another request, please retry"


class PersistenceError(FeedError):
    """Backing store failure. The detail never carries driver output."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Server error"
