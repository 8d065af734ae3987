"""
Equality keys - deep structural identity for artifact values.

Computed artifacts are cached by the *content* of their inputs, not by object
identity: two artifacts that compare equal as data must land on the same cache
entry even when they are different instances.

equality_key() folds a value into a hashable key:
- mappings compare as unordered key/value sets
- lists and tuples compare as ordered sequences (one array type, as in JSON)
- sets compare as sets
- bool is distinct from int; 1 and 1.0 are the same number; NaN equals NaN
- pydantic models and dataclasses compare by type and field values
- other hashable value objects (datetime, Decimal, UUID, enums) compare by ==,
  so a str or int Enum member equals its plain value ("navigation" matches
  GatherMode.NAVIGATION)

Anything else (opaque handles, objects without value equality) and cyclic
structures fold to a fresh token that equals nothing, so they can never cause
a false cache hit. They only cost a recomputation.
"""

import dataclasses
import math
from enum import Enum
from typing import Any, Dict, Generic, Hashable, Mapping, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel

V = TypeVar("V")

# Structural tags. Bare object() sentinels compare equal only to themselves.
_MAP = object()
_SEQ = object()
_SET = object()
_BOOL = object()
_NAN = object()
_MODEL = object()
_VALUE = object()


class _Unequal:
    """Key part for values that have no structural equality."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<unequal>"


def _freeze(value: Any, active: Set[int]) -> Hashable:
    if value is None or isinstance(value, (str, bytes)):
        return value
    if isinstance(value, bool):
        return (_BOOL, value)
    if isinstance(value, Enum):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return _NAN
        return value

    marker = id(value)
    if marker in active:
        # Cycle: no finite structural key exists.
        return _Unequal()
    active.add(marker)
    try:
        if isinstance(value, BaseModel):
            return (_MODEL, type(value), _freeze(value.model_dump(), active))
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            return (_MODEL, type(value), _freeze(fields, active))
        if isinstance(value, Mapping):
            return (
                _MAP,
                frozenset((_freeze(k, active), _freeze(v, active)) for k, v in value.items()),
            )
        if isinstance(value, (list, tuple)):
            return (_SEQ, tuple(_freeze(item, active) for item in value))
        if isinstance(value, (set, frozenset)):
            return (_SET, frozenset(_freeze(item, active) for item in value))
    finally:
        active.discard(marker)

    if type(value).__eq__ is object.__eq__:
        return _Unequal()
    try:
        hash(value)
    except TypeError:
        return _Unequal()
    return (_VALUE, value)


def equality_key(*values: Any) -> Hashable:
    """
    Fold one or more values into a hashable structural key.

    Equal keys mean the inputs are equal as data. Calling twice with the same
    plain-data inputs always yields equal keys.
    """
    active: Set[int] = set()
    return tuple(_freeze(value, active) for value in values)


class EqualityKeyedMap(Generic[V]):
    """
    Map whose lookups match keys by structural equality.

    Values are stored under equality_key(key); the original key objects are
    not retained. Callers that already hold a key can use the *_by_key methods
    to avoid folding the same value twice.
    """

    def __init__(self) -> None:
        self._entries: Dict[Hashable, V] = {}

    def get(self, key: Any) -> Optional[V]:
        return self._entries.get(equality_key(key))

    def set(self, key: Any, value: V) -> None:
        self._entries[equality_key(key)] = value

    def has(self, key: Any) -> bool:
        return equality_key(key) in self._entries

    def get_by_key(self, key: Hashable) -> Optional[V]:
        return self._entries.get(key)

    def set_by_key(self, key: Hashable, value: V) -> None:
        self._entries[key] = value

    def values(self) -> Tuple[V, ...]:
        return tuple(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
