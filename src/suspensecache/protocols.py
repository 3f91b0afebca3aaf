"""Interfaces of the external Observable Query and the results it emits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Protocol

if TYPE_CHECKING:
    from suspensecache.options import WatchQueryOptions

Unsubscribe = Callable[[], None]


class NetworkStatus(IntEnum):
    loading = 1
    set_variables = 2
    fetch_more = 3
    refetch = 4
    poll = 6
    ready = 7
    error = 8


@dataclass(frozen=True)
class QueryResult:
    """One snapshot of a query's state as reported by the Observable Query."""

    data: Any = None
    loading: bool = False
    network_status: NetworkStatus = NetworkStatus.ready
    error: BaseException | None = None

    def relevant(self) -> tuple:
        """Fields that decide whether a consumer needs to re-read."""
        return (self.loading, self.network_status, self.data)


class ObservableQuery(Protocol):
    """Reactive source for one (operation, variables) pair.

    Owns fetch policy and cancellation. Must honor
    ``options.fetch_on_first_subscribe`` from the factory that built it.
    """

    def get_current_result(self) -> QueryResult: ...

    def subscribe(self, observer: Callable[[QueryResult], None]) -> Unsubscribe: ...

    def reobserve(self) -> Awaitable[QueryResult]: ...

    def fetch_more(self, options: Mapping[str, Any]) -> Awaitable[QueryResult]: ...

    def refetch(
        self, variables: Mapping[str, Any] | None = None
    ) -> Awaitable[QueryResult]: ...

    def has_observers(self) -> bool: ...


ObservableQueryFactory = Callable[["WatchQueryOptions"], ObservableQuery]
