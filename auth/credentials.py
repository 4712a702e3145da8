"""
auth/credentials.py -- Password hashing, registration, and credential checks.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). The hash string embeds
       its own salt and cost factor, so verification needs nothing but the
       stored hash. bcrypt.checkpw compares in constant time.

  Length policy: bcrypt only reads the first 72 bytes of its input; newer
       bcrypt releases raise on longer input. Passwords over 72 UTF-8 bytes
       are rejected at registration rather than silently truncated.

  Anti-enumeration: authenticate_account() raises the same InvalidCredentials
       for an unknown email and for a wrong password. For an unknown email it
       still runs bcrypt against _DUMMY_HASH so response time does not reveal
       whether the account exists.

  Uniqueness: register_account() does not pre-check the email. The store's
       UNIQUE constraint decides, which keeps concurrent registrations correct.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import bcrypt
from sqlalchemy.exc import IntegrityError

from auth.models import Account
from core.errors import DuplicateEmail, InvalidCredentials, ValidationError

if TYPE_CHECKING:
    from auth.store import AccountStore

logger = logging.getLogger("tasklist.auth")

_BCRYPT_MAX_BYTES = 72
_EMAIL_MAX_LENGTH = 255
# Basic shape only: something@something.tld, no whitespace, one "@".
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Corrupt stored hash or over-long input -- never a match.
        return False


# Timing equalization dummy hash, computed once at module load so the first
# unknown-email login is not measurably slower than later ones.
_DUMMY_HASH: str = hash_password("tasklist_timing_dummy")


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup: stripped and lower-cased."""
    return email.strip().lower()


def _validate_email(email: str) -> None:
    if len(email) > _EMAIL_MAX_LENGTH or not _EMAIL_RE.match(email):
        raise ValidationError("Email address is not valid.", field="email")


def _validate_password(password: str, min_length: int) -> None:
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters.", field="password")
    if len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {_BCRYPT_MAX_BYTES} bytes.", field="password")


# ---------------------------------------------------------------------------
# Registration and authentication
# ---------------------------------------------------------------------------


def register_account(store: AccountStore, email: str, password: str, min_password_length: int = 8) -> Account:
    """Create an account and return it.

    Raises:
        ValidationError: bad email shape or password outside the length policy.
        DuplicateEmail:  an account with the same (case-insensitive) email exists.
    """
    email = normalize_email(email)
    _validate_email(email)
    _validate_password(password, min_password_length)

    account = Account(email=email, hashed_password=hash_password(password))
    try:
        account.id = store.create_account(account)
    except IntegrityError as exc:
        raise DuplicateEmail("An account with that email already exists.") from exc

    logger.info("account.registered account_id=%s", account.id)
    return account


def authenticate_account(store: AccountStore, email: str, password: str) -> Account:
    """Return the account whose credentials match, or raise InvalidCredentials.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)
    """
    account = store.get_by_email(normalize_email(email))
    if account is None:
        # Equalize timing -- do NOT return early before running bcrypt.
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials("Invalid email or password.")
    if not verify_password(password, account.hashed_password):
        raise InvalidCredentials("Invalid email or password.")
    return account
