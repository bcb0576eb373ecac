import logging
from datetime import datetime, timezone
from typing import Generator, Optional

from fastapi import Depends, Header
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from .errors import InvalidToken, MalformedHeader, MissingToken
from .store import AccountStore
from .tokens import TokenError, verify_token

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


class Identity(BaseModel):
    """Claims of a verified token, handed to guarded route handlers."""

    user_id: int
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> AccountStore:
    return AccountStore(db)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise MissingToken()
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise MalformedHeader()
    return parts[1]


def get_current_identity(authorization: Optional[str] = Header(None)) -> Identity:
    try:
        token = extract_bearer_token(authorization)
    except (MissingToken, MalformedHeader) as exc:
        logger.info("rejected request: %s", type(exc).__name__)
        raise

    try:
        claims = verify_token(token, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        return Identity(
            user_id=int(claims["sub"]),
            username=claims["username"],
            email=claims["email"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except TokenError as exc:
        logger.info("rejected token: %s", type(exc).__name__)
        raise InvalidToken() from exc
    except (KeyError, TypeError, ValueError) as exc:
        # signed by us but missing identity claims
        logger.info("rejected token without identity claims")
        raise InvalidToken() from exc
