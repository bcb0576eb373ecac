"""Account persistence."""

import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import DuplicateAccount
from .models.account import Account

logger = logging.getLogger(__name__)


class AccountStore:
    """Lookup and insert operations on accounts over a single session.

    Accounts are never updated or deleted through the store.
    """

    def __init__(self, session: Session):
        self.session = session

    def _handle_error(self, exc: Exception) -> None:
        """Rollback the session and raise an HTTP error for database failures."""
        self.session.rollback()
        logger.exception("account store error", exc_info=exc)
        raise HTTPException(status_code=500, detail="Database error") from exc

    def exists(self, username: str, email: str) -> bool:
        """Return True when the username or the email is already registered."""
        try:
            existing = (
                self.session.query(Account.id)
                .filter(or_(Account.username == username, Account.email == email))
                .first()
            )
        except SQLAlchemyError as exc:
            self._handle_error(exc)
        return existing is not None

    def create(self, username: str, email: str, password_hash: str) -> Account:
        """Insert a new account, raising ``DuplicateAccount`` on a username or email clash."""
        if self.exists(username, email):
            raise DuplicateAccount()

        account = Account(username=username, email=email, password_hash=password_hash)
        try:
            self.session.add(account)
            self.session.commit()
        except IntegrityError as exc:
            # a concurrent insert won the race for the same username or email
            self.session.rollback()
            raise DuplicateAccount() from exc
        except SQLAlchemyError as exc:
            self._handle_error(exc)
        self.session.refresh(account)
        return account

    def find_by_username(self, username: str) -> Optional[Account]:
        try:
            return self.session.query(Account).filter(Account.username == username).first()
        except SQLAlchemyError as exc:
            self._handle_error(exc)

    def find_by_id(self, account_id: int) -> Optional[Account]:
        try:
            return self.session.get(Account, account_id)
        except SQLAlchemyError as exc:
            self._handle_error(exc)

    def list_all(self) -> List[Account]:
        try:
            return self.session.query(Account).order_by(Account.id).all()
        except SQLAlchemyError as exc:
            self._handle_error(exc)
