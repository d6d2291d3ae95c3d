"""
Server-state query cache.

Each key (a tuple such as `("comments", 7)`) maps to one CachedQuery shared by
every subscriber. A value of None means "absent": nothing has been fetched,
which is distinct from an empty list.
"""
import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[Any], None]


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    SUCCESS = "success"


@dataclass
class CachedQuery:
    """Cache entry for one key."""

    key: QueryKey
    value: Any = None
    status: FetchStatus = FetchStatus.IDLE
    stale: bool = False
    optimistic: bool = False
    error: BaseException | None = None
    fetcher: Fetcher | None = None
    listeners: list[Listener] = field(default_factory=list)
    task: asyncio.Task[Any] | None = field(default=None, repr=False)
    status_before_fetch: FetchStatus = FetchStatus.IDLE

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


@dataclass(frozen=True)
class CacheSnapshot:
    """Deep copy of an entry's observable state, taken before a mutation."""

    key: QueryKey
    existed: bool
    value: Any
    status: FetchStatus
    stale: bool
    optimistic: bool


class QueryCache:
    """Keyed cache of server state with subscriptions and background refetch."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, CachedQuery] = {}

    def entry(self, key: QueryKey) -> CachedQuery | None:
        return self._entries.get(key)

    def _ensure(self, key: QueryKey) -> CachedQuery:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CachedQuery(key=key)
        return entry

    def get(self, key: QueryKey) -> Any:
        """Current value for `key`, or None when absent."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: QueryKey, value: Any, *, optimistic: bool = False) -> None:
        """Write a value directly and notify subscribers."""
        entry = self._ensure(key)
        entry.value = value
        entry.optimistic = optimistic
        entry.stale = False
        entry.error = None
        entry.status = FetchStatus.SUCCESS
        self._notify(entry)

    def subscribe(
        self,
        key: QueryKey,
        listener: Listener,
        fetcher: Fetcher | None = None,
    ) -> Callable[[], None]:
        """
        Attach a listener to `key`; returns a function that detaches it.

        When `fetcher` is given it becomes the entry's fetcher, and a fetch is
        started if the entry has no value yet or is stale. Must be called from a running
        event loop in that case.
        """
        entry = self._ensure(key)
        entry.listeners.append(listener)
        if fetcher is not None:
            entry.fetcher = fetcher
            if (entry.value is None or entry.stale) and not entry.is_fetching:
                self._start_fetch(entry)

        def unsubscribe() -> None:
            if listener in entry.listeners:
                entry.listeners.remove(listener)

        return unsubscribe

    async def fetch(self, key: QueryKey, fetcher: Fetcher | None = None) -> Any:
        """
        Fetch `key` and return the fresh value.

        Concurrent calls share one in-flight request. If `invalidate` replaces
        that request, the replacement is awaited instead. If it is cancelled
        with nothing to replace it (by a mutation), the current cached value is
        returned. A failed fetch sets status `error`, keeps the previous value
        and raises.
        """
        entry = self._ensure(key)
        if fetcher is not None:
            entry.fetcher = fetcher
        task = self._start_fetch(entry)
        while True:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
                replacement = entry.task
                if replacement is None or replacement.done():
                    return entry.value
                task = replacement

    def invalidate(self, key: QueryKey) -> asyncio.Task[Any] | None:
        """
        Mark `key` stale and refetch it for active subscribers.

        Subscribers are notified synchronously with the current (stale) value,
        then again when the refetch lands. A fetch already in flight is
        replaced, since it may predate the change that caused invalidation.
        Returns the refetch task, if one was started.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.stale = True
        self._notify(entry)
        if not entry.listeners or entry.fetcher is None:
            return None
        self._cancel_task(entry)
        return self._start_fetch(entry)

    def invalidate_prefix(self, prefix: QueryKey) -> list[asyncio.Task[Any]]:
        """
        Invalidate every key that starts with `prefix`.

        `("posts",)` covers `("posts", "list", ...)` and `("posts", "detail", 3)`
        alike. Returns the refetch tasks that were started.
        """
        matching = [key for key in self._entries if key[: len(prefix)] == prefix]
        tasks = []
        for key in matching:
            task = self.invalidate(key)
            if task is not None:
                tasks.append(task)
        return tasks

    def remove(self, key: QueryKey) -> None:
        """Drop `key`, cancelling its fetch. Subscribers are notified with None."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        self._cancel_task(entry)
        entry.value = None
        entry.status = FetchStatus.IDLE
        self._notify(entry)

    def cancel(self, key: QueryKey) -> bool:
        """Cancel an in-flight fetch for `key`. Returns True if one was running."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fetching:
            return False
        self._cancel_task(entry)
        logger.debug("query_fetch_cancelled", extra={"key": key})
        return True

    def snapshot(self, key: QueryKey) -> CacheSnapshot:
        entry = self._entries.get(key)
        if entry is None:
            return CacheSnapshot(
                key=key,
                existed=False,
                value=None,
                status=FetchStatus.IDLE,
                stale=False,
                optimistic=False,
            )
        return CacheSnapshot(
            key=key,
            existed=True,
            value=copy.deepcopy(entry.value),
            status=entry.status,
            stale=entry.stale,
            optimistic=entry.optimistic,
        )

    def restore(self, key: QueryKey, snapshot: CacheSnapshot) -> None:
        """
        Put back exactly what `snapshot` recorded.

        An entry that did not exist comes back absent: removed outright when
        nothing subscribes to it, otherwise kept with value None.
        """
        entry = self._entries.get(key)
        if entry is None:
            if not snapshot.existed:
                return
            entry = self._ensure(key)
        if not snapshot.existed and not entry.listeners:
            del self._entries[key]
            return
        entry.value = copy.deepcopy(snapshot.value)
        entry.status = snapshot.status
        entry.stale = snapshot.stale
        entry.optimistic = snapshot.optimistic
        self._notify(entry)

    async def settle(self, key: QueryKey) -> None:
        """Wait until no fetch is in flight for `key`. Never raises the fetch's error."""
        entry = self._entries.get(key)
        while entry is not None and entry.task is not None:
            task = entry.task
            await asyncio.wait([task])
            if entry.task is task:
                entry.task = None

    def _start_fetch(self, entry: CachedQuery) -> asyncio.Task[Any]:
        if entry.task is not None and not entry.task.done():
            return entry.task
        if entry.fetcher is None:
            raise ValueError(f"No fetcher registered for query {entry.key!r}")
        entry.status_before_fetch = entry.status
        entry.status = FetchStatus.LOADING
        task = asyncio.get_running_loop().create_task(self._run_fetch(entry, entry.fetcher))
        task.add_done_callback(lambda t: self._fetch_done(entry, t))
        entry.task = task
        return task

    def _cancel_task(self, entry: CachedQuery) -> None:
        if entry.task is not None and not entry.task.done():
            entry.task.cancel()
            entry.status = entry.status_before_fetch
        entry.task = None

    async def _run_fetch(self, entry: CachedQuery, fetcher: Fetcher) -> Any:
        try:
            value = await fetcher()
        except Exception as e:
            entry.status = FetchStatus.ERROR
            entry.error = e
            logger.warning("query_fetch_failed", extra={"key": entry.key, "error": str(e)})
            raise
        entry.value = value
        entry.status = FetchStatus.SUCCESS
        entry.stale = False
        entry.optimistic = False
        entry.error = None
        self._notify(entry)
        return value

    def _fetch_done(self, entry: CachedQuery, task: asyncio.Task[Any]) -> None:
        if entry.task is task:
            entry.task = None
        # Background refetches have no awaiter; the failure is already logged
        if not task.cancelled():
            task.exception()

    def _notify(self, entry: CachedQuery) -> None:
        for listener in list(entry.listeners):
            listener(entry.value)
