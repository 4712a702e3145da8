"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these only own the shape.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered user.

    email is stored normalized (stripped, lower-cased) so the UNIQUE index on
    the column makes uniqueness case-insensitive.

    hashed_password is the bcrypt hash string; salt and cost are embedded in it.
    """

    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, extracted from a validated token's claims.

    This is the only input authorization decisions trust. It is never rebuilt
    from request bodies, query strings, or headers other than the token.
    """

    subject: int
    email: str
    token_id: str


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed bearer token plus its expiry for client display."""

    token: str
    expires_at: datetime
    token_id: str
