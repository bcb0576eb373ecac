"""Service layer for registration and login."""

import logging
import secrets
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional, Tuple

from prometheus_client import Counter

from .config import settings
from .errors import DuplicateAccount, InvalidCredentials
from .models.account import Account
from .passwords import hash_password, verify_password
from .store import AccountStore
from .tokens import issue_token


logger = logging.getLogger(__name__)

REGISTRATION_COUNTER = Counter(
    "account_registrations_total", "Total accounts registered"
)
LOGIN_COUNTER = Counter(
    "login_attempts_total", "Total login attempts by outcome", ["outcome"]
)


@lru_cache(maxsize=1)
def _dummy_digest() -> str:
    return hash_password(secrets.token_urlsafe(16))


def token_ttl() -> timedelta:
    """Lifetime of tokens issued at login."""
    return timedelta(hours=settings.access_token_expire_hours)


def account_claims(account: Account) -> dict:
    """Identity claims embedded in a token for ``account``."""
    return {"sub": str(account.id), "username": account.username, "email": account.email}


def register_account(store: AccountStore, username: str, email: str, password: str) -> Account:
    """Hash the password and persist a new account.

    The caller is not logged in; a token is only issued by ``login``.
    """
    logger.info("registering account username=%s", username)
    if store.exists(username, email):
        raise DuplicateAccount()
    password_hash = hash_password(password)
    account = store.create(username, email, password_hash)
    REGISTRATION_COUNTER.inc()
    logger.info("registered account id=%s username=%s", account.id, account.username)
    return account


def login(
    store: AccountStore,
    username: str,
    password: str,
    now: Optional[datetime] = None,
) -> Tuple[str, Account]:
    """Verify credentials and return a freshly issued token with its account.

    Raises ``InvalidCredentials`` for an unknown username and for a wrong
    password alike.
    """
    account = store.find_by_username(username)
    if account is None:
        # spend the same bcrypt work as a wrong password would
        verify_password(password, _dummy_digest())
    if account is None or not verify_password(password, account.password_hash):
        LOGIN_COUNTER.labels(outcome="failure").inc()
        logger.info("login failed username=%s", username)
        raise InvalidCredentials()

    token = issue_token(
        account_claims(account),
        settings.jwt_secret,
        token_ttl(),
        now=now,
        algorithm=settings.jwt_algorithm,
    )
    LOGIN_COUNTER.labels(outcome="success").inc()
    logger.info("login succeeded id=%s username=%s", account.id, account.username)
    return token, account
