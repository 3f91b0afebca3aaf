"""Background queries — start a fetch now, read it later.

background_query() resolves watch options, gets or creates the shared
subscription and hands back a small handle. The consumer keeps the handle
(or just its box) and force-reads when it needs the value:

    handle = background_query(cache, USER, client.watch_query, variables={"id": 1})
    try:
        user = handle.read()
    except PendingRead as pending:
        await pending.box.wait()
        user = handle.read()
    ...
    handle.dispose()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Hashable, Mapping

from suspensecache.cache import SuspenseCache
from suspensecache.options import build_watch_options
from suspensecache.promise import PromiseBox, read_query
from suspensecache.protocols import ObservableQuery, ObservableQueryFactory, QueryResult, Unsubscribe
from suspensecache.subscription import QuerySubscription


@dataclass(frozen=True)
class BackgroundQuery:
    """One consumer's hold on a shared subscription."""

    subscription: QuerySubscription
    token: Hashable | None = None

    @property
    def box(self) -> PromiseBox:
        return self.subscription.box

    @property
    def observable(self) -> ObservableQuery:
        return self.subscription.observable

    @property
    def result(self) -> QueryResult:
        return self.subscription.result

    def read(self) -> Any:
        return read_query(self.subscription.box)

    def fetch_more(self, options: Mapping[str, Any]) -> PromiseBox:
        return self.subscription.fetch_more(options)

    def refetch(self, variables: Mapping[str, Any] | None = None) -> PromiseBox:
        return self.subscription.refetch(variables)

    def listen(self, callback: Callable[[QueryResult], None]) -> Unsubscribe:
        return self.subscription.listen(callback)

    def dispose(self) -> int:
        return self.subscription.dispose(self.token)


def background_query(
    cache: SuspenseCache,
    operation: Any,
    factory: ObservableQueryFactory,
    *,
    variables: Mapping[str, Any] | None = None,
    options: Mapping[str, Any] | None = None,
    token: Hashable | None = None,
) -> BackgroundQuery:
    """Acquire the subscription for operation + variables.

    Variables are merged over the cache's default variables and compacted
    before keying, so defaults take part in deduplication.
    """
    opts = dict(options or {})
    if variables is not None:
        opts["variables"] = variables
    watch_options = build_watch_options(operation, opts, cache.defaults)
    subscription = cache.get_or_create(
        operation, watch_options.variables, factory, watch_options, token=token
    )
    return BackgroundQuery(subscription, token)
