"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The only accepted credential is an Authorization: Bearer <token> header.
get_current_identity() extracts it, runs the token validator, and returns the
Identity carried by the token. Any failure -- missing header, wrong scheme,
malformed, badly signed, wrong issuer/audience, expired -- ends in the same
generic 401 before the route handler runs. The specific reason is logged.

The Identity is not re-checked against the account store: the signed claims
are the sole authority for who the caller is.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.models import Identity
from auth.tokens import get_token_service
from core.errors import TokenRejected

logger = logging.getLogger("tasklist.auth")

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": "Authentication required."},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Identity:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected method=%s path=%s reason=missing_bearer",
            request.method,
            request.url.path,
        )
        raise _unauthorized()

    try:
        identity = get_token_service().validate(credentials.credentials)
    except TokenRejected as exc:
        logger.warning(
            "auth.rejected method=%s path=%s reason=%s",
            request.method,
            request.url.path,
            exc.reason,
        )
        raise _unauthorized() from exc

    request.state.identity = identity
    return identity
