"""Id arena — generated integer ids for subscriptions and boxes.

The cache stores subscriptions in a plain dict keyed by these ids rather
than holding object graphs that point back at the cache.
"""

import itertools

# itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)
