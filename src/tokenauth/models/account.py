from sqlalchemy import Column, DateTime, Integer, String, func

from ..database import Base


class Account(Base):
    """SQLAlchemy model for a registered account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Account id={self.id} username={self.username!r}>"
