"""FastAPI application exposing registration, login and token-protected routes."""

from datetime import datetime, timedelta
from typing import List

import logging
from fastapi import Depends, FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from prometheus_client import Counter
from starlette.exceptions import HTTPException as StarletteHTTPException

from pydantic import BaseModel, ConfigDict, Field

from .auth import Identity, get_current_identity, get_store
from .config import settings
from .database import init_db
from .errors import AccountNotFound
from .services import login as login_account, register_account, token_ttl
from .store import AccountStore
from .tokens import inspect_token, issue_token


limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title=settings.api_title)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
init_db()

logger = logging.getLogger(__name__)

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their outcomes while updating metrics."""
    logger.info("request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response
    except Exception:
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status="500",
        ).inc()
        logger.exception(
            "error handling %s %s", request.method, request.url.path
        )
        raise


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed or incomplete request bodies as 400 rather than 422."""
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Point clients at the index when no route matches the path."""
    # routing misses carry Starlette's default detail; AccountNotFound does not
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Endpoint not found", "tip": "Visit / to see available endpoints"},
        )
    return await http_exception_handler(request, exc)


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=settings.password_min_length)


class LoginRequest(BaseModel):
    """Request body for logging in."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AccountSummary(BaseModel):
    """Public identity of an account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class AccountRecord(AccountSummary):
    """Stored account without its password digest."""

    created_at: datetime


class LoginResponse(BaseModel):
    """Bearer token issued at login."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: str = Field(..., alias="expiresIn")
    user: AccountSummary


class TokenInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    username: str
    issued_at: datetime = Field(..., alias="tokenIssuedAt")
    expires_at: datetime = Field(..., alias="tokenExpiresAt")


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Profile retrieved successfully"
    user: AccountRecord
    token_info: TokenInfo = Field(..., alias="tokenInfo")


class AccountListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "All users retrieved"
    requested_by: str = Field(..., alias="requestedBy")
    count: int
    users: List[AccountRecord]


def _format_ttl(ttl: timedelta) -> str:
    hours, remainder = divmod(int(ttl.total_seconds()), 3600)
    return f"{hours}h" if not remainder else f"{int(ttl.total_seconds())}s"


@app.get("/")
def index():
    """Describe the available endpoints and how to use them."""

    return {
        "message": "Authentication + JWT API",
        "endpoints": {
            "public": {
                "POST /api/register": "Create a new user account",
                "POST /api/login": "Login and receive a JWT token",
                "GET /api/decode-demo": "See what a JWT token contains",
            },
            "protected": {
                "GET /api/profile": "Get the current user profile (requires token)",
                "GET /api/users": "Get all users (requires token)",
            },
        },
        "howToUse": {
            "step1": "POST to /api/register to create an account",
            "step2": "POST to /api/login to get a JWT token",
            "step3": "Send the token in the Authorization header: Bearer <token>",
            "step4": "Access protected routes with the token",
        },
    }


@app.post("/api/register", response_model=AccountSummary, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
def register(
    request: Request, payload: RegisterRequest, store: AccountStore = Depends(get_store)
):
    """Create an account. The new user must log in separately to get a token."""

    return register_account(store, payload.username, payload.email, payload.password)


@app.post("/api/login", response_model=LoginResponse)
@limiter.limit(settings.auth_rate_limit)
def login(request: Request, payload: LoginRequest, store: AccountStore = Depends(get_store)):
    """Exchange a username and password for a bearer token."""

    token, account = login_account(store, payload.username, payload.password)
    return LoginResponse(
        token=token,
        expires_in=_format_ttl(token_ttl()),
        user=AccountSummary.model_validate(account),
    )


@app.get("/api/profile", response_model=ProfileResponse)
def get_profile(
    identity: Identity = Depends(get_current_identity),
    store: AccountStore = Depends(get_store),
):
    """Return the account the presented token was issued for."""

    account = store.find_by_id(identity.user_id)
    if account is None:
        raise AccountNotFound()
    return ProfileResponse(
        user=AccountRecord.model_validate(account),
        token_info=TokenInfo(
            user_id=identity.user_id,
            username=identity.username,
            issued_at=identity.issued_at,
            expires_at=identity.expires_at,
        ),
    )


@app.get("/api/users", response_model=AccountListResponse)
def list_users(
    identity: Identity = Depends(get_current_identity),
    store: AccountStore = Depends(get_store),
):
    """Return every account, without password digests."""

    accounts = [AccountRecord.model_validate(a) for a in store.list_all()]
    return AccountListResponse(
        requested_by=identity.username, count=len(accounts), users=accounts
    )


@app.get("/api/decode-demo")
def decode_demo():
    """Issue a throwaway token and show its decoded segments."""

    demo_token = issue_token(
        {"userId": 123, "username": "demo_user", "role": "admin"},
        settings.jwt_secret,
        timedelta(hours=1),
        algorithm=settings.jwt_algorithm,
    )
    parts = inspect_token(demo_token)
    parts["header"]["description"] = "Signing algorithm and token type"
    parts["payload"]["description"] = "Claims, including issued-at and expiry"
    parts["signature"]["description"] = "HMAC over header and payload; proves the token was not altered"
    return {
        "message": "JWT token structure demo",
        "fullToken": demo_token,
        "structure": parts,
        "important": [
            "Anyone can decode the header and payload; they are only base64url",
            "Only the holder of the secret key can produce a valid signature",
            "Changing the payload invalidates the signature",
            "Never put secrets such as passwords in the payload",
        ],
    }
