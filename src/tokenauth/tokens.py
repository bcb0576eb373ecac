"""Issue and verify signed, time-limited bearer tokens (JWT).

A token is three base64url segments joined with dots: a header naming the
signing algorithm, the claims augmented with ``iat`` and ``exp``, and an HMAC
signature over the first two segments. Verification is stateless; a token
stays valid until ``exp`` no matter what happens on the server.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

DEFAULT_ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenMalformed(TokenError):
    """Token is not a well formed JWT or lacks the required timestamps."""


class TokenSignatureInvalid(TokenError):
    """Signature does not match the header and claims."""


class TokenExpired(TokenError):
    """Current time is at or past the ``exp`` claim."""


def _timestamp(now: Optional[datetime]) -> int:
    if now is None:
        now = datetime.now(timezone.utc)
    return int(now.timestamp())


def issue_token(
    claims: Dict[str, Any],
    secret: str,
    ttl: timedelta,
    now: Optional[datetime] = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Sign ``claims`` together with issued-at and expiry timestamps."""
    issued_at = _timestamp(now)
    payload = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + int(ttl.total_seconds())
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(
    token: str,
    secret: str,
    now: Optional[datetime] = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Dict[str, Any]:
    """Return the claims of ``token`` if its signature and expiry check out.

    Raises
    ------
    TokenMalformed
        The token does not have exactly three segments, cannot be decoded, or
        is missing integer ``iat``/``exp`` claims. A segment that is not valid
        base64url, or a header that is not JSON, is reported here even when the
        signature would not match either, because segments are decoded
        before the signature is checked.
    TokenSignatureInvalid
        The signature was not produced with ``secret`` over well formed
        header and payload segments.
    TokenExpired
        ``now`` is at or after the ``exp`` claim.
    """
    if not isinstance(token, str) or len(token.split(".")) != 3:
        raise TokenMalformed("token must have exactly three segments")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            # expiry is checked below against an injectable clock
            options={
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
                "require": ["iat", "exp"],
            },
        )
    except jwt.InvalidSignatureError as exc:
        raise TokenSignatureInvalid(str(exc)) from exc
    except jwt.InvalidTokenError as exc:
        raise TokenMalformed(str(exc)) from exc

    expires_at = claims["exp"]
    if not isinstance(expires_at, int) or not isinstance(claims["iat"], int):
        raise TokenMalformed("iat and exp must be integer timestamps")
    if _timestamp(now) >= expires_at:
        raise TokenExpired("token expired")
    return claims


def inspect_token(token: str) -> Dict[str, Any]:
    """Decode header and claims without checking the signature.

    Only meant for showing what a token carries; never use the result for
    access decisions.
    """
    header_segment, payload_segment, signature_segment = token.split(".")
    return {
        "header": {"raw": header_segment, "decoded": jwt.get_unverified_header(token)},
        "payload": {
            "raw": payload_segment,
            "decoded": jwt.decode(token, options={"verify_signature": False}),
        },
        "signature": {"raw": signature_segment},
    }
