"""Watch options — what an Observable Query factory is asked to build.

Frozen Pydantic models, validated at construction. Per-call options win
over client defaults, which win over the built-in defaults. Variables are
merged the same way and compacted. Whatever the caller asks for,
``fetch_on_first_subscribe`` is forced off: the subscription's own initial
fetch is the authoritative one, and a second fetch on first subscribe
would race it.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, Field

from suspensecache.keys import compact

FetchPolicy = Literal[
    "cache-first", "cache-only", "cache-and-network", "network-only", "no-cache"
]
ErrorPolicy = Literal["none", "ignore", "all"]
SuspensePolicy = Literal["always", "initial"]

DEFAULT_FETCH_POLICY = "cache-first"
DEFAULT_ERROR_POLICY = "none"
DEFAULT_SUSPENSE_POLICY = "always"


class WatchQueryOptions(BaseModel, frozen=True):
    """Resolved options handed to an Observable Query factory.

    Attributes:
        operation: The operation token, passed through untouched.
        variables: Compacted variables the query runs with.
        fetch_policy: Cache/network policy, owned by the Observable Query.
        error_policy: How the Observable Query reports errors.
        suspense_policy: ``always`` re-suspends on network status changes.
        notify_on_network_status_change: Derived from suspense_policy.
        fetch_on_first_subscribe: Always False when built here.
        extra: Any other per-call options, passed through.
    """

    operation: Any
    variables: dict[str, Any] = Field(default_factory=dict)
    fetch_policy: FetchPolicy = DEFAULT_FETCH_POLICY
    error_policy: ErrorPolicy = DEFAULT_ERROR_POLICY
    suspense_policy: SuspensePolicy = DEFAULT_SUSPENSE_POLICY
    notify_on_network_status_change: bool = True
    fetch_on_first_subscribe: bool = False
    extra: dict[str, Any] = Field(default_factory=dict)


class DefaultOptions(BaseModel, frozen=True):
    """Client-level defaults applied under every call's options."""

    fetch_policy: FetchPolicy | None = None
    error_policy: ErrorPolicy | None = None
    variables: dict[str, Any] = Field(default_factory=dict)


def build_watch_options(
    operation: Any,
    options: Mapping[str, Any] | None = None,
    defaults: DefaultOptions | None = None,
) -> WatchQueryOptions:
    """Resolve per-call options against client defaults.

    Keys other than variables / fetch_policy / error_policy /
    suspense_policy are passed through to the factory in ``extra``.
    Unknown policies raise pydantic.ValidationError.
    """
    opts = dict(options or {})
    defaults = defaults or DefaultOptions()

    variables = opts.pop("variables", None) or {}
    fetch_policy = (
        opts.pop("fetch_policy", None) or defaults.fetch_policy or DEFAULT_FETCH_POLICY
    )
    error_policy = (
        opts.pop("error_policy", None) or defaults.error_policy or DEFAULT_ERROR_POLICY
    )
    suspense_policy = opts.pop("suspense_policy", None) or DEFAULT_SUSPENSE_POLICY
    opts.pop("fetch_on_first_subscribe", None)
    opts.pop("notify_on_network_status_change", None)

    return WatchQueryOptions(
        operation=operation,
        variables=compact({**defaults.variables, **variables}),
        fetch_policy=fetch_policy,
        error_policy=error_policy,
        suspense_policy=suspense_policy,
        notify_on_network_status_change=suspense_policy == "always",
        fetch_on_first_subscribe=False,
        extra=opts,
    )
