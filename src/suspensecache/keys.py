"""Key canonicalizer — arguments to a stable string key.

Two argument mappings produce the same key iff they are deep-equal after
normalization:

- ``None`` values mean "not provided" and are dropped, at every depth.
- Mapping key order is irrelevant.
- Lists and tuples are both sequences; sets are ordered by their rendering.
- An integral float is the same argument as the equivalent int.

Anything that is not plain data raises CanonicalizationError.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from suspensecache.errors import CanonicalizationError

_SEPARATORS = (",", ":")


def compact(mapping: Mapping[str, Any] | None) -> dict[str, Any]:
    """Copy of mapping with None values removed, recursively."""
    if not mapping:
        return {}
    out: dict[str, Any] = {}
    for key, value in mapping.items():
        if value is None:
            continue
        out[key] = compact(value) if isinstance(value, Mapping) else value
    return out


def _normalize(value: Any, path: str) -> Any:
    if value is None or isinstance(value, (str, bool)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return value
    if isinstance(value, Mapping):
        out = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"non-string key {key!r} at {path or '<root>'}"
                )
            if item is None:
                continue
            out[key] = _normalize(item, f"{path}.{key}" if path else key)
        return out
    if isinstance(value, (list, tuple)):
        return [_normalize(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, (set, frozenset)):
        items = [_normalize(item, f"{path}{{}}") for item in value]
        return sorted(items, key=_dumps)
    raise CanonicalizationError(
        f"cannot canonicalize {type(value).__name__} at {path or '<root>'}"
    )


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=_SEPARATORS)


def canonicalize(args: Mapping[str, Any] | None) -> str:
    """Stable string key for an argument mapping. None means no arguments."""
    if args is None:
        return "{}"
    if not isinstance(args, Mapping):
        raise CanonicalizationError(
            f"arguments must be a mapping, got {type(args).__name__}"
        )
    return _dumps(_normalize(args, ""))


def same_key(a: Mapping[str, Any] | None, b: Mapping[str, Any] | None) -> bool:
    return canonicalize(a) == canonicalize(b)
