"""Promise-state box — the synchronously readable outcome of a unit of work.

A PromiseBox wraps an awaitable and holds exactly one state variant:
Pending, Fulfilled(value) or Rejected(error). Variants are frozen; the box
swaps its reference once, from Pending to a terminal variant, and never
again. Readers never observe a half-written state.

    box = PromiseBox(observable.refetch())
    box.status          # PromiseStatus.pending
    await box.wait()
    box.read()          # the result, or raises the fetch's exception
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar, Union

from suspensecache import _anchor
from suspensecache.errors import PendingRead

T = TypeVar("T")


class PromiseStatus(str, Enum):
    pending = "pending"
    fulfilled = "fulfilled"
    rejected = "rejected"


@dataclass(frozen=True)
class Pending:
    status = PromiseStatus.pending


@dataclass(frozen=True)
class Fulfilled(Generic[T]):
    value: T
    status = PromiseStatus.fulfilled


@dataclass(frozen=True)
class Rejected:
    error: BaseException
    status = PromiseStatus.rejected


PromiseState = Union[Pending, Fulfilled[T], Rejected]

_PENDING = Pending()


class PromiseBox(Generic[T]):
    """Outcome of one fetch, readable without awaiting once settled."""

    __slots__ = ("_id", "_future", "_state", "_callbacks", "__weakref__")

    def __init__(self, work: Awaitable[T]) -> None:
        self._id = _anchor.new_id()
        self._state: PromiseState = _PENDING
        self._callbacks: list[Callable[[PromiseBox[T]], None]] = []
        self._future = asyncio.ensure_future(work)
        self._future.add_done_callback(self._on_done)

    @property
    def id(self) -> int:
        return self._id

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def status(self) -> PromiseStatus:
        return self._state.status

    @property
    def settled(self) -> bool:
        return self._state is not _PENDING

    @property
    def value(self) -> T:
        state = self._state
        if isinstance(state, Fulfilled):
            return state.value
        raise AttributeError(f"{self!r} has no value")

    @property
    def error(self) -> BaseException:
        state = self._state
        if isinstance(state, Rejected):
            return state.error
        raise AttributeError(f"{self!r} has no error")

    def read(self) -> T:
        """Force-read: value, stored error, or PendingRead if not settled."""
        state = self._state
        if isinstance(state, Fulfilled):
            return state.value
        if isinstance(state, Rejected):
            raise state.error
        raise PendingRead(self)

    async def wait(self) -> PromiseBox[T]:
        """Return once settled. Never raises the unit of work's error."""
        if not self.settled:
            await asyncio.wait((self._future,))
            # Done-callbacks are scheduled, not run, when the future completes.
            self._on_done(self._future)
        return self

    def add_done_callback(self, fn: Callable[[PromiseBox[T]], None]) -> None:
        """Call fn(box) once settled; immediately if already settled."""
        if self.settled:
            fn(self)
        else:
            self._callbacks.append(fn)

    # --- Transitions ---

    def _on_done(self, future: asyncio.Future) -> None:
        if future.cancelled():
            self._reject(asyncio.CancelledError())
            return
        error = future.exception()
        if error is not None:
            self._reject(error)
        else:
            self._fulfill(future.result())

    def _fulfill(self, value: T) -> None:
        self._settle(Fulfilled(value))

    def _reject(self, error: BaseException) -> None:
        self._settle(Rejected(error))

    def _settle(self, state: PromiseState) -> None:
        if self._state is not _PENDING:
            return
        self._state = state
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn(self)

    def __repr__(self) -> str:
        return f"PromiseBox(#{self._id}, {self.status.value})"


def read_query(box: PromiseBox[T]) -> T:
    """Force-read a box on behalf of a consumer. See PromiseBox.read."""
    return box.read()

