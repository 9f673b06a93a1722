# fieldmap/engine/hints.py
"""Small helpers for reading declared field types."""

from __future__ import annotations

import collections.abc
import types
import typing
from typing import Any, Optional

_UNION_TYPES = (typing.Union, types.UnionType)
_LIST_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence,
                 collections.abc.Collection, collections.abc.Iterable)


def strip_annotated(hint: Any) -> Any:
    while typing.get_origin(hint) is typing.Annotated:
        hint = typing.get_args(hint)[0]
    return hint


def unwrap_optional(hint: Any) -> Any:
    """``Optional[X]`` -> ``X``; other unions are returned untouched."""
    hint = strip_annotated(hint)
    if typing.get_origin(hint) in _UNION_TYPES:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return strip_annotated(args[0])
    return hint


def concrete_class(hint: Any) -> Optional[type]:
    """The plain class a hint stands for, or None for Any/TypeVars/unions/generics."""
    hint = unwrap_optional(hint)
    if isinstance(hint, type) and typing.get_origin(hint) is None:
        return hint
    return None


def list_element_type(hint: Any) -> Optional[type]:
    """
    For ``list[X]`` (or ``Sequence[X]`` and friends) with a concrete class X,
    return X. Unparametrized lists, ``list[Any]``, ``list[object]`` and type
    variables give None.
    """
    hint = unwrap_optional(hint)
    if typing.get_origin(hint) not in _LIST_ORIGINS:
        return None
    args = typing.get_args(hint)
    if len(args) != 1:
        return None
    element = concrete_class(args[0])
    if element is None or element is object:
        return None
    return element


def accepts(hint: Any, value: Any) -> bool:
    """Whether ``value`` may be stored in a field declared as ``hint``."""
    if hint is None or value is None:
        return True
    hint = strip_annotated(hint)
    if hint is Any or hint is object or isinstance(hint, typing.TypeVar):
        return True
    if isinstance(hint, (str, typing.ForwardRef)):
        return True
    origin = typing.get_origin(hint)
    if origin in _UNION_TYPES:
        return any(accepts(arg, value) for arg in typing.get_args(hint))
    if origin is typing.Literal:
        return value in typing.get_args(hint)
    if origin is not None:
        return isinstance(origin, type) and isinstance(value, origin)
    if not isinstance(hint, type):
        return True
    if hint is float and isinstance(value, int) and not isinstance(value, bool):
        return True
    return isinstance(value, hint)
