"""
auth/tokens.py -- Bearer token issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (account id), email, a random
       jti, iat, exp, iss and aud. The server keeps no session store; a token
       is valid for [iat, exp) and nothing can extend it.

  Validation order: the compact structure is parsed first (MalformedToken),
       then the signature is verified over the raw signing input
       (SignatureInvalid), and only then are the claims decoded and checked.
       A well-formed but badly signed token therefore never reaches the
       issuer/audience/expiry checks, and an altered payload byte always
       surfaces as a signature failure.

  Algorithm pinning: only HS256 is accepted. A header naming any other
       algorithm (including "none") is a signature failure.

  Clock: zero tolerance by default. JWT_CLOCK_SKEW_SECONDS widens the window
       on both ends when explicitly configured.

  SECRET_KEY: sourced from core.config.get_settings(). TokenService refuses
       keys shorter than 32 chars, so a misconfigured process dies at startup
       instead of issuing weak tokens.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError

from auth.models import Account, Identity, IssuedToken
from core.config import MIN_SECRET_KEY_LENGTH, Settings, get_settings
from core.errors import IssuerOrAudienceMismatch, MalformedToken, SignatureInvalid, TokenExpired

logger = logging.getLogger("tasklist.auth")

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "email", "jti", "iat", "exp", "iss", "aud")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class TokenService:
    """Signs and validates bearer tokens with one process-wide symmetric key.

    Instances are immutable after construction and safe to share between
    threads; neither issue() nor validate() mutates state.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        duration: timedelta,
        leeway: timedelta = timedelta(0),
    ) -> None:
        if not secret_key or len(secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"Token signing key must be at least {MIN_SECRET_KEY_LENGTH} characters.")
        if not issuer or not audience:
            raise ValueError("Token issuer and audience must not be empty.")
        if duration <= timedelta(0):
            raise ValueError("Token duration must be positive.")
        if leeway < timedelta(0):
            raise ValueError("Token clock skew leeway must not be negative.")
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience
        self._duration = duration
        self._leeway = leeway

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            secret_key=settings.secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            duration=timedelta(minutes=settings.jwt_duration_minutes),
            leeway=timedelta(seconds=settings.jwt_clock_skew_seconds),
        )

    @property
    def duration(self) -> timedelta:
        return self._duration

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, account: Account, now: datetime | None = None) -> IssuedToken:
        """Sign a token for an account that has just passed credential checks.

        Every call produces a distinct jti, so replaying a login never yields
        the same token twice.
        """
        if account.id is None:
            raise ValueError("Cannot issue a token for an unsaved account.")
        now = now or datetime.now(timezone.utc)
        issued_at = int(now.timestamp())
        expires_at = issued_at + int(self._duration.total_seconds())
        token_id = secrets.token_urlsafe(16)
        claims = {
            "sub": str(account.id),
            "email": account.email,
            "jti": token_id,
            "iat": issued_at,
            "exp": expires_at,
            "iss": self._issuer,
            "aud": self._audience,
        }
        token = jwt.encode(claims, self._secret_key, algorithm=_ALGORITHM)
        return IssuedToken(
            token=token,
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
            token_id=token_id,
        )

    # ------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------

    def validate(self, token: str, now: datetime | None = None) -> Identity:
        """Verify a presented token and return the Identity it asserts.

        Raises:
            MalformedToken:           not a decodable compact JWS / bad claims.
            SignatureInvalid:         wrong key, tampered content, or wrong alg.
            IssuerOrAudienceMismatch: iss/aud differ from configuration.
            TokenExpired:             now is outside [iat, exp).
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("Token is empty.")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken("Token structure could not be decoded.") from exc
        if header.get("alg") != _ALGORITHM:
            raise SignatureInvalid("Token algorithm is not accepted.")

        try:
            payload = jws.verify(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWSError as exc:
            raise SignatureInvalid("Token signature verification failed.") from exc

        claims = self._decode_claims(payload)

        audience = claims["aud"]
        audiences = audience if isinstance(audience, list) else [audience]
        if claims["iss"] != self._issuer or self._audience not in audiences:
            raise IssuerOrAudienceMismatch("Token issuer or audience is not accepted.")

        now = now or datetime.now(timezone.utc)
        current = now.timestamp()
        leeway = self._leeway.total_seconds()
        if current < claims["iat"] - leeway or current >= claims["exp"] + leeway:
            raise TokenExpired("Token is outside its validity window.")

        return Identity(subject=int(claims["sub"]), email=claims["email"], token_id=claims["jti"])

    @staticmethod
    def _decode_claims(payload: bytes) -> dict:
        try:
            claims = json.loads(payload)
        except ValueError as exc:
            raise MalformedToken("Token payload is not JSON.") from exc
        if not isinstance(claims, dict):
            raise MalformedToken("Token payload is not a claim set.")

        missing = [name for name in _REQUIRED_CLAIMS if name not in claims]
        if missing:
            raise MalformedToken(f"Token is missing claims: {', '.join(missing)}.")
        if not _is_number(claims["iat"]) or not _is_number(claims["exp"]):
            raise MalformedToken("Token timestamps are not numeric.")
        if not isinstance(claims["sub"], str) or not claims["sub"].isdigit():
            raise MalformedToken("Token subject is not an account id.")
        if not isinstance(claims["email"], str) or not isinstance(claims["jti"], str):
            raise MalformedToken("Token identity claims are not strings.")
        return claims


@lru_cache
def get_token_service() -> TokenService:
    """Return the process-wide TokenService built from get_settings().

    Called once during startup so a bad key fails the boot, not a request.
    """
    return TokenService.from_settings(get_settings())
