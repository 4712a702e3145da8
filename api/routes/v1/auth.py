"""
api/routes/v1/auth.py -- Registration, login, and identity endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account
  POST /api/v1/auth/login     -- password login; returns a bearer token
  GET  /api/v1/auth/me        -- identity from the presented token (requires auth)

Security:
  register and login are rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_account() provides timing equalization -- use it, never inline.
  Login returns the same "bad_credentials" error for an unknown email and a
  wrong password. Cache-Control: no-store on every login response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
)
from auth.credentials import authenticate_account, register_account
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.store import AccountStore
from auth.tokens import get_token_service
from core.config import get_settings
from core.errors import InvalidCredentials

logger = logging.getLogger("tasklist.api")

# Auth policy:
# - POST /api/v1/auth/register: public -- rate limited
# - POST /api/v1/auth/login:    public -- rate limited
# - GET  /api/v1/auth/me:       requires auth (get_current_identity)
router = APIRouter()

_LOGIN_RATE_LIMIT = get_settings().login_rate_limit


@limiter.limit(_LOGIN_RATE_LIMIT)
@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create an account. Duplicate email -> 409, policy violations -> 422."""
    account_store: AccountStore = request.app.state.account_store
    account = register_account(
        account_store,
        body.email,
        body.password,
        min_password_length=get_settings().password_min_length,
    )
    return RegisterResponse(id=account.id, email=account.email)


@limiter.limit(_LOGIN_RATE_LIMIT)
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed bearer token."""
    account_store: AccountStore = request.app.state.account_store
    try:
        account = authenticate_account(account_store, body.email, body.password)
    except InvalidCredentials:
        logger.info("auth.login_failed")
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Invalid email or password.")
            ).model_dump(exclude_none=True),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    issued = get_token_service().issue(account)
    logger.info("auth.login_succeeded account_id=%s jti=%s", account.id, issued.token_id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=issued.token, expires_at=issued.expires_at).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity asserted by the presented token."""
    return MeResponse(user_id=identity.subject, email=identity.email)
