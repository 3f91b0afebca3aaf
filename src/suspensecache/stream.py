"""Push-based result stream with equality gating.

A subscription fans Observable Query results out through an EventStream.
distinct() returns a child stream that drops a value when its key equals
the key of the last value let through, so listeners only wake for real
changes. dispose() tears down the chain.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Disposer = Callable[[], None]

_UNSET = object()


class EventStream(Generic[T]):
    """Push-based event stream. Subscribers fire in registration order."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[T], None]] = []
        self._children: list[EventStream] = []  # downstream streams for dispose
        self._disposed = False
        self._parent_disposer: Disposer | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._subscribers)

    def emit(self, value: T) -> None:
        """Push a value to all subscribers."""
        if self._disposed:
            return
        # Snapshot: a callback may unsubscribe itself or others.
        for cb in list(self._subscribers):
            cb(value)

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        """Register a callback. Returns a function that removes it.

        The returned function is safe to call more than once. The same
        callback subscribed twice is two registrations.
        """
        token = _Registration(callback)
        self._subscribers.append(token)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(token)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def distinct(
        self, key: Callable[[T], Any] = lambda v: v, *, seed: Any = _UNSET
    ) -> EventStream[T]:
        """Only pass values whose key differs from the last one passed.

        seed, when given, is the key the first value is compared against.
        """
        child: EventStream[T] = EventStream()
        last = [seed]

        def _on_event(value: T) -> None:
            k = key(value)
            if last[0] is not _UNSET and last[0] == k:
                return
            last[0] = k
            child.emit(value)

        unsubscribe = self.subscribe(_on_event)
        remove = self._track_child(child)

        def _detach() -> None:
            unsubscribe()
            remove()

        child._parent_disposer = _detach
        return child

    def dispose(self) -> None:
        """Tear down this stream and all downstream children."""
        self._disposed = True
        self._subscribers.clear()
        for child in list(self._children):
            child.dispose()
        self._children.clear()
        if self._parent_disposer is not None:
            self._parent_disposer()
            self._parent_disposer = None

    def _track_child(self, child: EventStream) -> Disposer:
        """Register child for dispose propagation. Returns a disposer that removes it."""
        self._children.append(child)

        def _remove() -> None:
            try:
                self._children.remove(child)
            except ValueError:
                pass

        return _remove


class _Registration:
    """Identity wrapper so removing one registration never removes another."""

    __slots__ = ("callback",)

    def __init__(self, callback: Callable) -> None:
        self.callback = callback

    def __call__(self, value: Any) -> None:
        self.callback(value)
