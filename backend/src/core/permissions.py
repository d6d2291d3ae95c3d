"""
Ownership gate for mutating owned resources (posts, comments).

The client library applies the same rule to decide whether to offer edit/delete
actions; this module is the authoritative check.
"""
from typing import Protocol

from core.exceptions import ForbiddenError

ADMIN_ROLE = "admin"


class Principal(Protocol):
    """Anything with a user id and a role (a User row or a client session)."""

    id: int
    role: str


def can_modify(user: Principal | None, author_id: int | None) -> bool:
    """Owner of the resource or an admin may modify it. No user never may."""
    if user is None:
        return False
    if user.role == ADMIN_ROLE:
        return True
    return author_id is not None and user.id == author_id


def ensure_can_modify(
    user: Principal,
    author_id: int | None,
    action: str,
    resource: str,
) -> None:
    """Raise ForbiddenError unless `user` may modify the resource."""
    if not can_modify(user, author_id):
        raise ForbiddenError(f"Not authorized to {action} this {resource}")
