"""
core/errors.py -- Domain error taxonomy for TaskList.

Every failure the auth core and the task operations can report is one of the
classes below. The HTTP layer (api/main.py) maps each family to exactly one
status code and one generic client message; the detailed reason stays in the
server log.

  ValidationError      -> 422  malformed input, reported with the field name
  AuthenticationError  -> 401  bad credentials or rejected token, generic
  AuthorizationError   -> 404  ownership mismatch, reported as "not found"
  ConflictError        -> 409  duplicate email
  InternalError        -> 500  anything unanticipated (via the safety net)

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or tasks/.
"""

from __future__ import annotations


class TaskListError(Exception):
    """Base class for every expected, typed failure in the service."""


class ValidationError(TaskListError):
    """Input failed a validation rule before any state was touched."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthenticationError(TaskListError):
    """The caller could not be authenticated. Never detailed to the client."""


class InvalidCredentials(AuthenticationError):
    """Unknown email or wrong password -- deliberately indistinguishable."""


class TokenRejected(AuthenticationError):
    """A presented bearer token failed validation.

    reason is a short machine-readable label for the server log only.
    """

    reason = "rejected"


class MalformedToken(TokenRejected):
    reason = "malformed"


class SignatureInvalid(TokenRejected):
    reason = "signature_invalid"


class TokenExpired(TokenRejected):
    reason = "expired"


class IssuerOrAudienceMismatch(TokenRejected):
    reason = "issuer_or_audience_mismatch"


# ---------------------------------------------------------------------------
# Authorization / conflicts / internal
# ---------------------------------------------------------------------------


class AuthorizationError(TaskListError):
    """The identity does not own the resource, or the resource does not exist.

    Both cases share this one class so the HTTP response is identical.
    """


class ConflictError(TaskListError):
    """A uniqueness rule was violated."""


class DuplicateEmail(ConflictError):
    pass


class InternalError(TaskListError):
    """Unanticipated failure. Surfaces to clients only as a generic 500."""
