"""Tests for the session context and its file store."""
from pathlib import Path

import pytest

from blog_client.models import AuthResult, User
from blog_client.session import Session, SessionContext, SessionStore


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "nested" / "session.json")


@pytest.fixture
def ada() -> Session:
    return Session(token="abc", user_id=1, name="Ada", role="admin", avatar="a.png")


class TestSessionStore:
    """Tests for SessionStore."""

    def test__load__missing_file(self, store: SessionStore) -> None:
        assert store.load() is None

    def test__save__round_trip(self, store: SessionStore, ada: Session) -> None:
        store.save(ada)

        assert store.load() == ada

    def test__load__corrupt_file(self, store: SessionStore) -> None:
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")

        assert store.load() is None

    def test__clear__removes_file(self, store: SessionStore, ada: Session) -> None:
        store.save(ada)

        store.clear()
        store.clear()

        assert not store.path.exists()


class TestSessionContext:
    """Tests for SessionContext."""

    def test__init__loads_persisted_session(self, store: SessionStore, ada: Session) -> None:
        store.save(ada)

        context = SessionContext(store)

        assert context.session == ada
        assert context.token == "abc"
        assert context.is_authenticated is True

    def test__start__persists(self, store: SessionStore, ada: Session) -> None:
        SessionContext(store).start(ada)

        assert SessionContext(store).session == ada

    def test__clear__forgets_and_removes_file(self, store: SessionStore, ada: Session) -> None:
        context = SessionContext(store)
        context.start(ada)

        context.clear()

        assert context.session is None
        assert context.token is None
        assert store.load() is None

    def test__in_memory_context(self, ada: Session) -> None:
        context = SessionContext()
        context.start(ada)

        assert context.is_authenticated is True

    def test__invalidate__clears_before_running_hooks(
        self, store: SessionStore, ada: Session,
    ) -> None:
        context = SessionContext(store)
        context.start(ada)
        observed: list[tuple[str, bool]] = []
        context.add_invalidation_hook(
            lambda reason: observed.append((reason, context.is_authenticated)),
        )

        context.invalidate("unauthorized")

        assert observed == [("unauthorized", False)]
        assert store.load() is None

    def test__add_invalidation_hook__remove(self, ada: Session) -> None:
        context = SessionContext()
        context.start(ada)
        calls: list[str] = []
        remove = context.add_invalidation_hook(calls.append)

        remove()
        context.invalidate("unauthorized")

        assert calls == []


def test__session__from_auth() -> None:
    result = AuthResult(
        token="jwt",
        user=User(id=3, name="Grace", email="grace@example.com", role="user", avatar="g.png"),
    )

    session = Session.from_auth(result)

    assert session == Session(token="jwt", user_id=3, name="Grace", role="user", avatar="g.png")
    assert session.is_admin is False
