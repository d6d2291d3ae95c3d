"""Tests for the server-state query cache."""
import asyncio
from typing import Any

import pytest

from blog_client.cache import FetchStatus, QueryCache

KEY = ("comments", 1)


class Recorder:
    """Listener that records every value it is notified with."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def __call__(self, value: Any) -> None:
        self.values.append(value)


class GatedFetcher:
    """Fetcher that returns queued values, each only once its gate opens."""

    def __init__(self, *values: Any) -> None:
        self.values = list(values)
        self.calls = 0
        self.gate = asyncio.Event()
        self.gate.set()

    async def __call__(self) -> Any:
        self.calls += 1
        await self.gate.wait()
        return self.values.pop(0)


class TestGetSet:
    """Tests for get and set."""

    def test__get__absent_is_none(self) -> None:
        assert QueryCache().get(KEY) is None

    def test__set__stores_and_notifies(self) -> None:
        cache = QueryCache()
        listener = Recorder()
        cache.subscribe(KEY, listener)

        cache.set(KEY, [1, 2])

        assert cache.get(KEY) == [1, 2]
        assert listener.values == [[1, 2]]
        assert cache.entry(KEY).status is FetchStatus.SUCCESS

    def test__set__optimistic_flag(self) -> None:
        cache = QueryCache()

        cache.set(KEY, [1], optimistic=True)

        assert cache.entry(KEY).optimistic is True

    def test__set__empty_list_is_not_absent(self) -> None:
        cache = QueryCache()

        cache.set(KEY, [])

        assert cache.get(KEY) == []


class TestFetch:
    """Tests for fetch and subscribe."""

    async def test__fetch__stores_value(self) -> None:
        cache = QueryCache()

        value = await cache.fetch(KEY, GatedFetcher(["a"]))

        assert value == ["a"]
        assert cache.get(KEY) == ["a"]
        assert cache.entry(KEY).status is FetchStatus.SUCCESS

    async def test__fetch__concurrent_calls_share_one_request(self) -> None:
        cache = QueryCache()
        fetcher = GatedFetcher(["a"])
        fetcher.gate.clear()

        first = asyncio.create_task(cache.fetch(KEY, fetcher))
        second = asyncio.create_task(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)
        fetcher.gate.set()

        assert await first == ["a"]
        assert await second == ["a"]
        assert fetcher.calls == 1

    async def test__fetch__failure_sets_error_and_keeps_value(self) -> None:
        cache = QueryCache()
        cache.set(KEY, ["old"])

        async def failing() -> Any:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await cache.fetch(KEY, failing)

        entry = cache.entry(KEY)
        assert entry.status is FetchStatus.ERROR
        assert str(entry.error) == "boom"
        assert cache.get(KEY) == ["old"]

    async def test__fetch__without_fetcher_raises(self) -> None:
        with pytest.raises(ValueError, match="No fetcher"):
            await QueryCache().fetch(KEY)

    async def test__subscribe__starts_fetch_when_absent(self) -> None:
        cache = QueryCache()
        listener = Recorder()
        fetcher = GatedFetcher(["a"])

        cache.subscribe(KEY, listener, fetcher)
        assert cache.entry(KEY).status is FetchStatus.LOADING
        await cache.settle(KEY)

        assert listener.values == [["a"]]
        assert fetcher.calls == 1

    async def test__subscribe__reuses_cached_value(self) -> None:
        cache = QueryCache()
        cache.set(KEY, ["cached"])
        fetcher = GatedFetcher(["a"])

        cache.subscribe(KEY, Recorder(), fetcher)

        assert fetcher.calls == 0
        assert cache.entry(KEY).is_fetching is False

    async def test__subscribe__unsubscribe_stops_notifications(self) -> None:
        cache = QueryCache()
        listener = Recorder()
        unsubscribe = cache.subscribe(KEY, listener)

        unsubscribe()
        cache.set(KEY, [1])

        assert listener.values == []


class TestInvalidate:
    """Tests for invalidate."""

    async def test__invalidate__notifies_then_refetches(self) -> None:
        cache = QueryCache()
        fetcher = GatedFetcher(["v1"], ["v2"])
        listener = Recorder()
        cache.subscribe(KEY, listener, fetcher)
        await cache.settle(KEY)

        task = cache.invalidate(KEY)

        assert listener.values == [["v1"], ["v1"]]
        assert cache.entry(KEY).stale is True
        assert task is not None
        await cache.settle(KEY)
        assert listener.values == [["v1"], ["v1"], ["v2"]]
        assert cache.entry(KEY).stale is False

    async def test__invalidate__without_subscribers_only_marks_stale(self) -> None:
        cache = QueryCache()
        await cache.fetch(KEY, GatedFetcher(["v1"]))

        assert cache.invalidate(KEY) is None
        assert cache.entry(KEY).stale is True
        assert cache.get(KEY) == ["v1"]

    def test__invalidate__unknown_key(self) -> None:
        assert QueryCache().invalidate(KEY) is None

    async def test__invalidate__replaces_in_flight_fetch(self) -> None:
        """A fetch started before the invalidation never writes its result."""
        cache = QueryCache()
        gate = asyncio.Event()
        calls = 0

        async def fetcher() -> list[str]:
            nonlocal calls
            calls += 1
            call = calls
            await gate.wait()
            return [f"call-{call}"]

        cache.subscribe(KEY, Recorder(), fetcher)
        await asyncio.sleep(0)
        first_task = cache.entry(KEY).task

        cache.invalidate(KEY)
        gate.set()
        await cache.settle(KEY)

        assert first_task.cancelled()
        assert calls == 2
        assert cache.get(KEY) == ["call-2"]

    async def test__invalidate__pending_fetch_returns_refetched_value(self) -> None:
        """Awaiting fetch across an invalidation yields the new server value, not the old one."""
        cache = QueryCache()
        server = {"value": "old"}
        gate = asyncio.Event()

        async def fetcher() -> str:
            await gate.wait()
            return server["value"]

        cache.subscribe(KEY, Recorder(), fetcher)
        pending = asyncio.create_task(cache.fetch(KEY))
        await asyncio.sleep(0)

        server["value"] = "fresh"
        cache.invalidate(KEY)
        gate.set()

        assert await pending == "fresh"
        assert cache.get(KEY) == "fresh"

    async def test__invalidate__pending_fetch_follows_repeated_replacements(self) -> None:
        cache = QueryCache()
        fetcher = GatedFetcher("v1", "v2", "v3")
        fetcher.gate.clear()
        cache.subscribe(KEY, Recorder(), fetcher)
        pending = asyncio.create_task(cache.fetch(KEY))
        await asyncio.sleep(0)

        cache.invalidate(KEY)
        await asyncio.sleep(0)
        cache.invalidate(KEY)
        fetcher.gate.set()

        assert await pending == "v1"
        assert fetcher.calls == 3
        assert cache.get(KEY) == "v1"


class TestInvalidatePrefix:
    """Tests for invalidate_prefix."""

    async def test__invalidate_prefix__refetches_every_matching_key(self) -> None:
        cache = QueryCache()
        listing = GatedFetcher(["p1"], ["p1", "p2"])
        detail = GatedFetcher({"id": 1}, {"id": 1, "title": "edited"})
        comments = GatedFetcher([], [])
        cache.subscribe(("posts", "list", 1), Recorder(), listing)
        cache.subscribe(("posts", "detail", 1), Recorder(), detail)
        cache.subscribe(("comments", 1), Recorder(), comments)
        for key in [("posts", "list", 1), ("posts", "detail", 1), ("comments", 1)]:
            await cache.settle(key)

        tasks = cache.invalidate_prefix(("posts",))
        await asyncio.gather(*tasks)

        assert len(tasks) == 2
        assert cache.get(("posts", "list", 1)) == ["p1", "p2"]
        assert cache.get(("posts", "detail", 1)) == {"id": 1, "title": "edited"}
        assert comments.calls == 1
        assert cache.entry(("comments", 1)).stale is False

    async def test__invalidate_prefix__marks_unwatched_keys_stale(self) -> None:
        cache = QueryCache()
        await cache.fetch(("posts", "list", 1), GatedFetcher(["p1"]))

        assert cache.invalidate_prefix(("posts",)) == []
        assert cache.entry(("posts", "list", 1)).stale is True

    def test__invalidate_prefix__does_not_match_partial_elements(self) -> None:
        cache = QueryCache()
        cache.set(("postscript",), 1)
        cache.set(("post", 1), 2)

        cache.invalidate_prefix(("posts",))

        assert cache.entry(("postscript",)).stale is False
        assert cache.entry(("post", 1)).stale is False


class TestRemove:
    """Tests for remove."""

    async def test__remove__drops_entry_and_cancels_fetch(self) -> None:
        cache = QueryCache()
        listener = Recorder()
        fetcher = GatedFetcher(["a"])
        fetcher.gate.clear()
        cache.subscribe(KEY, listener, fetcher)
        await asyncio.sleep(0)
        task = cache.entry(KEY).task

        cache.remove(KEY)
        await asyncio.sleep(0)

        assert task.cancelled()
        assert cache.entry(KEY) is None
        assert listener.values == [None]

    def test__remove__unknown_key(self) -> None:
        QueryCache().remove(KEY)


class TestCancel:
    """Tests for cancel."""

    async def test__cancel__restores_pre_fetch_status(self) -> None:
        cache = QueryCache()
        cache.set(KEY, ["v1"])
        fetcher = GatedFetcher(["v2"])
        fetcher.gate.clear()
        fetch = asyncio.create_task(cache.fetch(KEY, fetcher))
        await asyncio.sleep(0)
        assert cache.entry(KEY).status is FetchStatus.LOADING

        assert cache.cancel(KEY) is True

        assert cache.entry(KEY).status is FetchStatus.SUCCESS
        assert await fetch == ["v1"]
        assert cache.get(KEY) == ["v1"]

    def test__cancel__nothing_in_flight(self) -> None:
        assert QueryCache().cancel(KEY) is False


class TestSnapshotRestore:
    """Tests for snapshot and restore."""

    def test__snapshot__is_deep_copy(self) -> None:
        cache = QueryCache()
        value = [{"id": 1}]
        cache.set(KEY, value)

        snapshot = cache.snapshot(KEY)
        value[0]["id"] = 99

        assert snapshot.value == [{"id": 1}]

    def test__restore__puts_back_value_and_flags(self) -> None:
        cache = QueryCache()
        cache.set(KEY, [1])
        snapshot = cache.snapshot(KEY)
        cache.set(KEY, [1, 2], optimistic=True)

        cache.restore(KEY, snapshot)

        entry = cache.entry(KEY)
        assert entry.value == [1]
        assert entry.optimistic is False
        assert entry.status is FetchStatus.SUCCESS

    def test__restore__absent_entry_is_removed(self) -> None:
        cache = QueryCache()
        snapshot = cache.snapshot(KEY)
        cache.set(KEY, ["optimistic"], optimistic=True)

        cache.restore(KEY, snapshot)

        assert cache.entry(KEY) is None
        assert cache.get(KEY) is None

    def test__restore__absent_entry_with_subscribers_keeps_none(self) -> None:
        cache = QueryCache()
        listener = Recorder()
        cache.subscribe(KEY, listener)
        snapshot = cache.snapshot(KEY)
        cache.set(KEY, ["optimistic"], optimistic=True)

        cache.restore(KEY, snapshot)

        assert cache.get(KEY) is None
        assert cache.entry(KEY).status is FetchStatus.IDLE
        assert listener.values == [["optimistic"], None]
