"""
Explicit session context.

The session (token plus the identity needed for ownership checks) is an object
handed to the HTTP client, not ambient global state. It is persisted to a JSON
file so it survives restarts, and it exposes invalidation hooks that fire when
the server rejects the token.
"""
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

from blog_client.models import AuthResult

logger = logging.getLogger(__name__)

InvalidationHook = Callable[[str], None]


class Session(BaseModel):
    """An authenticated identity."""

    token: str
    user_id: int
    name: str
    role: Literal["user", "admin"] = "user"
    avatar: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_auth(cls, result: AuthResult) -> "Session":
        """Build a session from a login or registration response."""
        return cls(
            token=result.token,
            user_id=result.user.id,
            name=result.user.name,
            role=result.user.role,
            avatar=result.user.avatar,
        )


class SessionStore:
    """Reads and writes a session to a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Session | None:
        """Return the stored session, or None if there is none or it is unreadable."""
        if not self.path.exists():
            return None
        try:
            return Session.model_validate_json(self.path.read_text())
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            logger.warning(
                "session_file_unreadable", extra={"path": str(self.path), "error": str(e)},
            )
            return None

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json())

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionContext:
    """
    The current session, if any, for one client.

    Args:
        store: Where the session is persisted. Without a store the session
            lives only in memory.
    """

    def __init__(self, store: SessionStore | None = None) -> None:
        self._store = store
        self._session = store.load() if store is not None else None
        self._hooks: list[InvalidationHook] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def start(self, session: Session) -> None:
        """Adopt a new session after login or registration."""
        self._session = session
        if self._store is not None:
            self._store.save(session)
        logger.info("session_started", extra={"user_id": session.user_id})

    def clear(self) -> None:
        """Forget the session (logout)."""
        self._session = None
        if self._store is not None:
            self._store.clear()

    def invalidate(self, reason: str) -> None:
        """
        Drop a session the server no longer accepts and fire the hooks.

        Hooks play the part of "redirect to login". They run after the
        session is cleared, so they always observe the logged-out state.
        """
        user_id = self._session.user_id if self._session else None
        self.clear()
        logger.info("session_invalidated", extra={"user_id": user_id, "reason": reason})
        for hook in list(self._hooks):
            hook(reason)

    def add_invalidation_hook(self, hook: InvalidationHook) -> Callable[[], None]:
        """Register a hook; returns a function that unregisters it."""
        self._hooks.append(hook)

        def remove() -> None:
            if hook in self._hooks:
                self._hooks.remove(hook)

        return remove
