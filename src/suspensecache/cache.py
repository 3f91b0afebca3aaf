"""Suspense cache — the deduplication table.

Maps operation → canonical key → QuerySubscription. Subscriptions live in
an arena keyed by their generated id; the table holds only ids, and the
box index holds boxes weakly.

Operations are matched by identity, not equality: two structurally equal
operations built separately are different operations and will not share a
subscription. Build each operation once and reuse it.

There is no module-level default cache. Whoever owns the client owns the
cache and passes it to every entry point.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Hashable, Iterator, Mapping

from suspensecache.keys import canonicalize, compact
from suspensecache.options import DefaultOptions, WatchQueryOptions, build_watch_options
from suspensecache.promise import PromiseBox
from suspensecache.protocols import ObservableQueryFactory
from suspensecache.subscription import QuerySubscription

logger = logging.getLogger("suspensecache.cache")

Variables = Mapping[str, Any] | None


class SuspenseCache:
    """Create-or-reuse table of QuerySubscriptions, one per live key."""

    def __init__(self, defaults: DefaultOptions | None = None) -> None:
        self.defaults = defaults or DefaultOptions()
        # Arena: subscription id -> subscription
        self._subscriptions: dict[int, QuerySubscription] = {}
        # id(operation) -> (operation, key -> subscription id). Holding the
        # operation keeps its id from being reused while the entry lives.
        self._queries: dict[int, tuple[Any, dict[str, int]]] = {}
        # box -> subscription id, for current and superseded boxes. Weak, so
        # a superseded box nobody holds any more drops out on its own.
        self._boxes: weakref.WeakKeyDictionary[PromiseBox, int] = (
            weakref.WeakKeyDictionary()
        )

    def get_or_create(
        self,
        operation: Any,
        variables: Variables,
        factory: ObservableQueryFactory,
        options: WatchQueryOptions | None = None,
        *,
        token: Hashable | None = None,
    ) -> QuerySubscription:
        """Return the subscription for (operation, variables), acquired.

        The key is taken from the variables the query actually runs with:
        ``options.variables`` when options are given, otherwise ``variables``
        merged over the cache's default variables. On a miss,
        factory(options) builds the Observable Query and the new
        subscription issues the initial fetch. Lookup and insertion happen
        without yielding to the event loop.
        """
        if options is None:
            key = self._key(variables)
        else:
            key = canonicalize(options.variables)
        subscription = self._find(operation, key)
        if subscription is None:
            if options is None:
                options = build_watch_options(
                    operation, {"variables": variables}, self.defaults
                )
            elif options.fetch_on_first_subscribe:
                options = options.model_copy(update={"fetch_on_first_subscribe": False})
            subscription = QuerySubscription(
                operation, key, factory(options), on_box=self._register_box
            )
            self._insert(subscription)
            logger.debug("Created %r", subscription)
        else:
            logger.debug("Reusing %r", subscription)
        subscription.acquire(token)
        return subscription

    def lookup(self, operation: Any, variables: Variables) -> QuerySubscription | None:
        """The cached subscription, without acquiring it."""
        return self._find(operation, self._key(variables))

    def get_by_unit_of_work(self, box: PromiseBox) -> QuerySubscription | None:
        """Owning subscription of a box it issued, while still cached."""
        sub_id = self._boxes.get(box)
        if sub_id is None:
            return None
        return self._subscriptions.get(sub_id)

    def remove(self, operation: Any, variables: Variables) -> bool:
        """Drop the entry unless it is still retained. Returns True if dropped."""
        entry = self._queries.get(id(operation))
        if entry is None or entry[0] is not operation:
            return False
        keys = entry[1]
        key = self._key(variables)
        sub_id = keys.get(key)
        if sub_id is None:
            return False
        subscription = self._subscriptions[sub_id]
        if subscription.retained:
            logger.debug("Not removing %r: still retained", subscription)
            return False
        del keys[key]
        if not keys:
            del self._queries[id(operation)]
        self._forget(sub_id)
        logger.debug("Removed %r", subscription)
        return True

    def clear(self) -> None:
        """Forget every entry, retained or not.

        Subscriptions are not disposed, but they are cut loose: a later
        refetch or fetch_more on one of them no longer puts it back.
        """
        for subscription in self._subscriptions.values():
            subscription._on_box = None
        self._subscriptions.clear()
        self._queries.clear()
        self._boxes.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __iter__(self) -> Iterator[QuerySubscription]:
        return iter(list(self._subscriptions.values()))

    def __contains__(self, item: tuple[Any, Variables]) -> bool:
        operation, variables = item
        return self.lookup(operation, variables) is not None

    # --- Internals ---

    def _find(self, operation: Any, key: str) -> QuerySubscription | None:
        entry = self._queries.get(id(operation))
        if entry is None or entry[0] is not operation:
            return None
        sub_id = entry[1].get(key)
        return self._subscriptions.get(sub_id) if sub_id is not None else None

    def _insert(self, subscription: QuerySubscription) -> None:
        operation = subscription.operation
        entry = self._queries.get(id(operation))
        if entry is None:
            entry = (operation, {})
            self._queries[id(operation)] = entry
        entry[1][subscription.key] = subscription.id
        self._subscriptions[subscription.id] = subscription
        self._boxes[subscription.box] = subscription.id

    def _key(self, variables: Variables) -> str:
        if variables is not None and not isinstance(variables, Mapping):
            return canonicalize(variables)  # raises
        return canonicalize(compact({**self.defaults.variables, **(variables or {})}))

    def _forget(self, sub_id: int) -> None:
        del self._subscriptions[sub_id]
        for box in [b for b, s in self._boxes.items() if s == sub_id]:
            del self._boxes[box]

    def _register_box(self, subscription: QuerySubscription, box: PromiseBox) -> None:
        """Called by a subscription when refetch/fetch_more replaces its box."""
        if self._find(subscription.operation, subscription.key) is None:
            # Removed while a holder kept using it: put it back.
            self._insert(subscription)
            logger.debug("Re-registered %r", subscription)
        elif subscription.id in self._subscriptions:
            self._boxes[box] = subscription.id
