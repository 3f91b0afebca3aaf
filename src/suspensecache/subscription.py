"""Query subscriptions — the unit of deduplication.

One QuerySubscription binds one (operation, key) pair to one Observable
Query. It owns the current PromiseBox, replaces it on refetch/fetch_more,
fans results out to listeners only when they actually change, and counts
the consumers holding it.

Ref counting is the caller's contract: every acquire() is matched by one
dispose(). Consumers whose host runtime may re-run setup/teardown pairs
pass a stable token, which makes acquire/dispose idempotent per token.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Hashable, Mapping, TypeVar

from suspensecache import _anchor
from suspensecache.promise import PromiseBox, PromiseStatus
from suspensecache.protocols import ObservableQuery, QueryResult, Unsubscribe
from suspensecache.stream import EventStream

logger = logging.getLogger("suspensecache.subscription")

T = TypeVar("T")

BoxHook = Callable[["QuerySubscription", PromiseBox], None]


class QuerySubscription(Generic[T]):
    """Shared handle on one in-flight or settled query."""

    def __init__(
        self,
        operation: Any,
        key: str,
        observable: ObservableQuery,
        *,
        on_box: BoxHook | None = None,
    ) -> None:
        self._id = _anchor.new_id()
        self._operation = operation
        self._key = key
        self._observable = observable
        # Token holders and tokenless holders are counted apart, so a
        # tokenless dispose can never release a token's hold.
        self._holders: set[Hashable] = set()
        self._anonymous = 0
        self._unsubscribe_observable: Unsubscribe | None = None

        initial = observable.get_current_result()
        self._result: QueryResult = initial
        self._results: EventStream[QueryResult] = EventStream()
        self._changes = self._results.distinct(QueryResult.relevant, seed=initial.relevant())
        # Registered first so listeners always see the updated result.
        self._changes.subscribe(self._set_result)

        # The authoritative initial fetch. The observable was built with
        # fetch_on_first_subscribe=False so attaching later won't repeat it.
        self._box: PromiseBox[T] = self._wrap(observable.reobserve())
        self._on_box = on_box

    # --- Identity ---

    @property
    def id(self) -> int:
        return self._id

    @property
    def operation(self) -> Any:
        return self._operation

    @property
    def key(self) -> str:
        return self._key

    @property
    def observable(self) -> ObservableQuery:
        return self._observable

    # --- State ---

    @property
    def box(self) -> PromiseBox[T]:
        """The most recently issued box."""
        return self._box

    @property
    def result(self) -> QueryResult:
        """Last known result, fresher than any box once updates stream in."""
        return self._result

    @property
    def ref_count(self) -> int:
        return len(self._holders) + self._anonymous

    @property
    def retained(self) -> bool:
        """Held by a consumer, or the Observable Query still has observers."""
        return self.ref_count > 0 or self._observable.has_observers()

    # --- Lifecycle ---

    def acquire(self, token: Hashable | None = None) -> int:
        """Add a holder. Returns the new ref count.

        With a token, acquiring again under the same token is a no-op.
        """
        if token is not None:
            if token in self._holders:
                return self.ref_count
            self._holders.add(token)
        else:
            self._anonymous += 1
        if self.ref_count == 1:
            self._attach()
        return self.ref_count

    def dispose(self, token: Hashable | None = None) -> int:
        """Release a holder. Returns the new ref count.

        At zero the internal observer is detached and the subscription
        becomes eligible for removal from its cache. The count never goes
        below zero: a tokenless dispose only releases a tokenless acquire,
        and a token only releases its own hold.
        """
        if token is not None:
            if token not in self._holders:
                return self.ref_count
            self._holders.discard(token)
        elif self._anonymous == 0:
            logger.warning("dispose() without a token on %r: no holders; ignored", self)
            return self.ref_count
        else:
            self._anonymous -= 1
        if self.ref_count == 0:
            self._detach()
        return self.ref_count

    def _attach(self) -> None:
        if self._unsubscribe_observable is None:
            self._unsubscribe_observable = self._observable.subscribe(self._results.emit)

    def _detach(self) -> None:
        if self._unsubscribe_observable is not None:
            unsubscribe, self._unsubscribe_observable = self._unsubscribe_observable, None
            unsubscribe()

    # --- Fetching ---

    def fetch_more(self, options: Mapping[str, Any]) -> PromiseBox[T]:
        """Start a fetch-more on the shared observable. Returns the new box."""
        return self._replace(self._observable.fetch_more(options))

    def refetch(self, variables: Mapping[str, Any] | None = None) -> PromiseBox[T]:
        """Start a refetch on the shared observable. Returns the new box."""
        return self._replace(self._observable.refetch(variables))

    def _wrap(self, work) -> PromiseBox[T]:
        box: PromiseBox[T] = PromiseBox(work)
        box.add_done_callback(self._on_settled)
        return box

    def _replace(self, work) -> PromiseBox[T]:
        old, box = self._box, self._wrap(work)
        self._box = box
        logger.debug("%r replaced %r with %r", self, old, box)
        if self._on_box is not None:
            self._on_box(self, box)
        return box

    def _on_settled(self, box: PromiseBox[T]) -> None:
        # Superseded boxes keep their own outcome but don't move the result.
        if box is not self._box or box.status is not PromiseStatus.fulfilled:
            return
        if isinstance(box.value, QueryResult):
            self._results.emit(box.value)

    # --- Updates ---

    def listen(self, callback: Callable[[QueryResult], None]) -> Unsubscribe:
        """Call callback with each result whose loading, network status or
        data differs from the last known one. Returns an idempotent
        unsubscribe function."""
        return self._changes.subscribe(callback)

    def _set_result(self, result: QueryResult) -> None:
        self._result = result

    def __repr__(self) -> str:
        return f"QuerySubscription(#{self._id}, {self._key}, refs={self.ref_count})"
