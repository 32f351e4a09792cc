from collections.abc import Mapping
from typing import Any, Dict


def deep_merge(target: Any, source: Any) -> Dict[str, Any]:
    """
    Merge `source` into `target` in place and return it.

    Nested mappings are merged key by key; anything else (scalars, lists,
    None) replaces the existing value outright. Keys missing from `source`
    are left alone.
    """
    if not isinstance(source, Mapping):
        return target
    if not isinstance(target, dict):
        target = {}

    for key, value in source.items():
        if isinstance(value, Mapping):
            target[key] = deep_merge(target.get(key), value)
        else:
            target[key] = value
    return target
