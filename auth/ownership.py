"""
auth/ownership.py -- Ownership guard for single-resource operations.

Rule: a resource is visible to and mutable by its owner only. The owner is the
Identity subject taken from a validated token, never anything the client sent.

Anti-enumeration: a resource that does not exist and a resource owned by
somebody else produce the same AuthorizationError. The HTTP layer maps that
to 404, so a caller cannot probe for other users' resource ids.

Listing is not guarded here: list queries are filtered by owner_id in the
store (TaskStore.list_for_owner), so no foreign row is ever loaded.

Layer rule: no imports from api/ or tasks/. Resources are matched
structurally through the Owned protocol.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, TypeVar

from auth.models import Identity
from core.errors import AuthorizationError

logger = logging.getLogger("tasklist.auth")


class Owned(Protocol):
    id: Optional[int]
    owner_id: int


R = TypeVar("R", bound=Owned)


def _is_owner(identity: Identity, resource: Optional[Owned]) -> bool:
    return resource is not None and resource.owner_id == identity.subject


def authorize_read(identity: Identity, resource: Optional[Owned]) -> bool:
    """Return True if identity may see resource."""
    return _is_owner(identity, resource)


def authorize_mutate(identity: Identity, resource: Optional[Owned]) -> bool:
    """Return True if identity may update or delete resource."""
    return _is_owner(identity, resource)


def _deny(identity: Identity, resource: Optional[Owned], action: str) -> AuthorizationError:
    if resource is not None:
        # Existence is logged server-side only; the client sees "not found".
        logger.info(
            "ownership.denied action=%s subject=%s resource_id=%s",
            action,
            identity.subject,
            resource.id,
        )
    return AuthorizationError("Resource not found.")


def require_read_access(identity: Identity, resource: Optional[R]) -> R:
    """Return resource if identity owns it, else raise AuthorizationError."""
    if not authorize_read(identity, resource):
        raise _deny(identity, resource, "read")
    return resource


def require_mutate_access(identity: Identity, resource: Optional[R]) -> R:
    """Return resource if identity may mutate it, else raise AuthorizationError."""
    if not authorize_mutate(identity, resource):
        raise _deny(identity, resource, "mutate")
    return resource
