"""Password hashing and verification backed by bcrypt.

Digests embed their own random salt and work factor, so ``hash_password``
returns a different string on every call for the same input and
``verify_password`` needs nothing but the stored digest.
"""

import bcrypt

from .config import settings

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt digest of ``password``.

    Parameters
    ----------
    password: str
        Plaintext password.
    rounds: int, optional
        Work factor; defaults to ``settings.bcrypt_rounds``.
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored digest using bcrypt's own comparison."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except (ValueError, TypeError, UnicodeEncodeError):
        return False
