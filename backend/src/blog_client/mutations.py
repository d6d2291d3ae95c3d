"""
Optimistic mutations.

A mutation makes its effect visible in the cache before the server answers,
then reconciles. Each run walks a small state machine:

    idle -> snapshotted -> applied -> committed | rolled_back

On success the key is invalidated so the server's value replaces the
optimistic one. On failure the snapshot is restored verbatim (an absent entry
stays absent), an error notification is shown and the error is re-raised.
Nothing is retried.
"""
import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from blog_client.cache import CacheSnapshot, QueryCache, QueryKey
from blog_client.notifications import GENERIC_ERROR_MESSAGE, Notifier, describe_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationState(str, Enum):
    IDLE = "idle"
    SNAPSHOTTED = "snapshotted"
    APPLIED = "applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


_TRANSITIONS: dict[MutationState, set[MutationState]] = {
    MutationState.IDLE: {MutationState.SNAPSHOTTED},
    MutationState.SNAPSHOTTED: {MutationState.APPLIED},
    MutationState.APPLIED: {MutationState.COMMITTED, MutationState.ROLLED_BACK},
    MutationState.COMMITTED: set(),
    MutationState.ROLLED_BACK: set(),
}


class MutationStateError(RuntimeError):
    """Raised on an illegal transition, e.g. running a mutation twice."""


class OptimisticMutation(Generic[T]):
    """
    One optimistic write against one cache key.

    Args:
        cache: The cache holding `key`.
        key: The query the mutation affects.
        apply: Builds the optimistic value from a deep copy of the current
            value (None when absent).
        request: Performs the server call.
        notifier: Receives the success/error notification.
        success_message: Shown on success; omitted when None.
        error_message: Shown on failure when the server gave no message.
    """

    def __init__(
        self,
        cache: QueryCache,
        key: QueryKey,
        apply: Callable[[Any], Any],
        request: Callable[[], Awaitable[T]],
        notifier: Notifier | None = None,
        success_message: str | None = None,
        error_message: str = GENERIC_ERROR_MESSAGE,
    ) -> None:
        self.cache = cache
        self.key = key
        self._apply = apply
        self._request = request
        self._notifier = notifier or Notifier()
        self._success_message = success_message
        self._error_message = error_message
        self.state = MutationState.IDLE
        self.snapshot: CacheSnapshot | None = None
        self.error: BaseException | None = None

    def _transition(self, new_state: MutationState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise MutationStateError(f"Cannot go from {self.state.value} to {new_state.value}")
        logger.debug(
            "mutation_transition",
            extra={"key": self.key, "from": self.state.value, "to": new_state.value},
        )
        self.state = new_state

    def _rollback(self, snapshot: CacheSnapshot, error: BaseException) -> None:
        self.cache.restore(self.key, snapshot)
        self.error = error
        self._transition(MutationState.ROLLED_BACK)

    async def run(self) -> T:
        """
        Apply optimistically, send the request and reconcile.

        Raises:
            MutationStateError: If this mutation already ran.
            Exception: Whatever the request raised, after rollback.
        """
        if self.state is not MutationState.IDLE:
            raise MutationStateError(f"Mutation already {self.state.value}")

        # A fetch that started before this write would overwrite it on arrival
        self.cache.cancel(self.key)
        snapshot = self.snapshot = self.cache.snapshot(self.key)
        self._transition(MutationState.SNAPSHOTTED)

        self.cache.set(self.key, self._apply(copy.deepcopy(snapshot.value)), optimistic=True)
        self._transition(MutationState.APPLIED)

        try:
            result = await self._request()
        except asyncio.CancelledError as e:
            self._rollback(snapshot, e)
            raise
        except Exception as e:
            self._rollback(snapshot, e)
            self._notifier.error(describe_error(e, self._error_message))
            raise

        self._transition(MutationState.COMMITTED)
        self.cache.invalidate(self.key)
        if self._success_message:
            self._notifier.success(self._success_message)
        return result
