"""Exceptions raised by suspensecache.

Fetch failures are never wrapped: the exception produced by the unit of
work is the one a consumer sees. The classes here cover the cache's own
signals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from suspensecache.promise import PromiseBox


class SuspenseCacheError(Exception):
    """Base class for suspensecache exceptions."""


class CanonicalizationError(SuspenseCacheError, TypeError):
    """Arguments contain something that is not plain data."""


class PendingRead(SuspenseCacheError):
    """Force-read of a box that has not settled yet.

    Not a failure: the caller should stall until ``box`` settles
    (``await exc.box.wait()``) and read again.
    """

    def __init__(self, box: PromiseBox) -> None:
        super().__init__(f"{box!r} is still pending")
        self.box = box
