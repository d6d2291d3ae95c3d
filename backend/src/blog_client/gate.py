"""
Client-side ownership gate.

Decides whether to offer edit/delete on a post or comment. The server applies
the same rule (`core.permissions.can_modify`) and is the authority; this check
only avoids offering actions the server would reject.
"""
from blog_client.models import Comment, Post
from blog_client.session import Session


def can_modify(session: Session | None, author_id: int | None) -> bool:
    """Owner of the resource or an admin may modify it. No session never may."""
    if session is None:
        return False
    if session.is_admin:
        return True
    return author_id is not None and session.user_id == author_id


def can_modify_resource(session: Session | None, resource: Post | Comment) -> bool:
    return can_modify(session, resource.author.id)
