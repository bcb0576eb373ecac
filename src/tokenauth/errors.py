"""HTTP errors raised by the service layer and the auth guard.

Each error is an ``HTTPException`` so FastAPI renders it as
``{"detail": ...}`` with the right status code. The token failures keep
distinct types for logging, but all of them share one status and message.
"""

from fastapi import HTTPException, status

TOKEN_REJECTED_DETAIL = "Invalid or missing token"


class DuplicateAccount(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email is already taken",
        )


class InvalidCredentials(HTTPException):
    """Unknown username or wrong password; callers cannot tell which."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )


class TokenRejected(HTTPException):
    """Base class for requests refused by the auth guard."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=TOKEN_REJECTED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )


class MissingToken(TokenRejected):
    pass


class MalformedHeader(TokenRejected):
    pass


class InvalidToken(TokenRejected):
    pass


class AccountNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
