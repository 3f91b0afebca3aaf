"""suspensecache: deduplicating, ref-counted cache of in-flight query fetches."""

from importlib.metadata import version as _version

__version__ = _version("suspensecache")

from suspensecache.errors import CanonicalizationError, PendingRead, SuspenseCacheError
from suspensecache.keys import canonicalize, compact, same_key
from suspensecache.promise import (
    Fulfilled,
    Pending,
    PromiseBox,
    PromiseStatus,
    Rejected,
    read_query,
)
from suspensecache.protocols import NetworkStatus, ObservableQuery, QueryResult
from suspensecache.options import DefaultOptions, WatchQueryOptions, build_watch_options
from suspensecache.stream import EventStream
from suspensecache.subscription import QuerySubscription
from suspensecache.cache import SuspenseCache
from suspensecache.background import BackgroundQuery, background_query
# textual NOT auto-imported — opt-in only

__all__ = [
    "BackgroundQuery",
    "CanonicalizationError",
    "DefaultOptions",
    "EventStream",
    "Fulfilled",
    "NetworkStatus",
    "ObservableQuery",
    "Pending",
    "PendingRead",
    "PromiseBox",
    "PromiseStatus",
    "QueryResult",
    "QuerySubscription",
    "Rejected",
    "SuspenseCache",
    "SuspenseCacheError",
    "WatchQueryOptions",
    "background_query",
    "build_watch_options",
    "canonicalize",
    "compact",
    "read_query",
    "same_key",
]
