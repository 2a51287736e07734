"""orjson helpers used for config files and structured results."""

from __future__ import annotations

import dataclasses
from typing import Any

import orjson


def _default(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def loads(data: bytes | str) -> Any:
    """Parse JSON from bytes or str."""
    return orjson.loads(data)


def dumps(obj: Any, *, sort_keys: bool = False) -> str:
    """Serialize to a JSON string.

    Objects exposing ``to_dict()`` are serialized through it, which keeps
    wire dataclasses in their camelCase form.
    """
    option = orjson.OPT_NON_STR_KEYS | orjson.OPT_PASSTHROUGH_DATACLASS
    if sort_keys:
        option |= orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, default=_default, option=option).decode("utf-8")


def to_plain(obj: Any) -> Any:
    """Round-trip a value through JSON to plain dicts, lists and scalars."""
    return orjson.loads(dumps(obj))
