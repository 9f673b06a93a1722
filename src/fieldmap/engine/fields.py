# fieldmap/engine/fields.py

from __future__ import annotations

import dataclasses
import functools
import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from fieldmap.sources.markers import built_type
from fieldmap.sources.table import declared_field_names, declared_sources
from fieldmap.sources.types import Adapter, Source

from .hints import strip_annotated

log = logging.getLogger(__name__)

# node types of a parsed JSON tree (bool is covered by int)
JSON_TYPES = (dict, list, str, int, float)


def is_json_type(cls: type) -> bool:
    """Whether instances of ``cls`` are nodes of a parsed JSON tree."""
    return isinstance(cls, type) and issubclass(cls, JSON_TYPES)


# ---------------------------------------------------------------------------
# Field records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceField:
    owner: type
    name: str
    hint: Any = field(default=None, compare=False)
    # read from the instance, not declared on the type
    dynamic: bool = False

    def get(self, obj: Any) -> Any:
        return getattr(obj, self.name, None)


@dataclass(frozen=True)
class DestinationField:
    """
    A field of a destination class. Identity is the declaring class plus the
    name, so same-named fields on different classes never share cache entries.
    """

    owner: type
    name: str
    hint: Any = field(default=None, compare=False)
    sources: Tuple[Source, ...] = field(default=(), compare=False)
    adapter: Optional[type] = field(default=None, compare=False)

    def __repr__(self) -> str:
        return f"<field {self.owner.__qualname__}.{self.name}>"


# ---------------------------------------------------------------------------
# Reading class declarations
# ---------------------------------------------------------------------------

def _own_annotations(cls: type) -> Dict[str, Any]:
    try:
        return dict(inspect.get_annotations(cls))
    except Exception as e:  # pragma: no cover - broken user annotations
        log.warning("Cannot read annotations of %s: %s", cls, e)
        return {}


@functools.lru_cache(maxsize=None)
def _resolved_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        log.debug("Unresolvable type hints on %s (%s), using raw annotations", cls, e)
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(_own_annotations(klass))
        return hints


def _is_classvar(hint: Any) -> bool:
    hint = strip_annotated(hint)
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar


def _metadata(hint: Any) -> Tuple[Any, ...]:
    if typing.get_origin(hint) is typing.Annotated:
        return tuple(getattr(hint, "__metadata__", ()))
    return ()


def declared_fields(cls: type) -> Tuple[DestinationField, ...]:
    """Fields declared directly on ``cls`` (not inherited), in declaration order."""
    return _declared_fields(cls)


@functools.lru_cache(maxsize=None)
def _declared_fields(cls: type) -> Tuple[DestinationField, ...]:
    hints = _resolved_hints(cls)
    names = [n for n in _own_annotations(cls) if not n.startswith("__")]
    names += [n for n in declared_field_names(cls) if n not in names]

    out = []
    for name in names:
        hint = hints.get(name)
        if _is_classvar(hint):
            continue
        metadata = _metadata(hint)
        sources = tuple(m for m in metadata if isinstance(m, Source)) + declared_sources(cls, name)
        adapters = [m.adapter for m in metadata if isinstance(m, Adapter)]
        out.append(DestinationField(
            owner=cls,
            name=name,
            hint=hint,
            sources=sources,
            adapter=adapters[0] if adapters else None,
        ))
    return tuple(out)


def hierarchy_fields(cls: type) -> Tuple[DestinationField, ...]:
    """
    Fields of ``cls`` and its ancestors, most distant ancestor first. A field
    redeclared closer to ``cls`` hides the ancestor's field of that name.
    """
    return _hierarchy_fields(cls)


@functools.lru_cache(maxsize=None)
def _hierarchy_fields(cls: type) -> Tuple[DestinationField, ...]:
    seen = set()
    levels = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        level = [f for f in declared_fields(klass) if f.name not in seen]
        seen.update(f.name for f in level)
        levels.append(level)
    return tuple(f for level in reversed(levels) for f in level)


def find_declared_field(cls: type, name: str) -> Optional[DestinationField]:
    """Same-named destination field on ``cls`` or its nearest ancestor."""
    for klass in cls.__mro__:
        for f in declared_fields(klass):
            if f.name == name:
                return f
    return None


def _own_source_names(klass: type):
    yield from (n for n, h in _own_annotations(klass).items() if not _is_classvar(h))
    slots = vars(klass).get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    yield from (s for s in slots if not s.startswith("__"))
    # namedtuple fields are _tuplegetter descriptors, listed in _fields
    if issubclass(klass, tuple):
        yield from vars(klass).get("_fields", ())
    for n, v in vars(klass).items():
        if isinstance(v, (property, functools.cached_property)):
            yield n


def _declares_all_fields(cls: type) -> bool:
    """Dataclasses and pydantic models list every attribute on the type."""
    return dataclasses.is_dataclass(cls) or hasattr(cls, "__pydantic_fields__")


def _instance_attributes(cls: type) -> bool:
    return getattr(cls, "__dictoffset__", 0) != 0


def lookup_source_field(cls: type, name: str) -> Optional[SourceField]:
    """
    Uncached: walk ``cls`` and its ancestors for a declared attribute
    ``name`` (annotation, slot, namedtuple field or property).

    Plain classes and namespaces that set attributes on the instance give a
    ``dynamic`` field read from the instance; an absent attribute reads as None.
    """
    if is_json_type(cls):
        return None
    for klass in cls.__mro__:
        if klass is object:
            break
        if name in set(_own_source_names(klass)):
            return SourceField(owner=klass, name=name, hint=_resolved_hints(klass).get(name))
    if _instance_attributes(cls) and not _declares_all_fields(cls):
        return SourceField(owner=cls, name=name, dynamic=True)
    log.debug("No source field %s found for %s", name, cls)
    return None
    for klass in cls.__mro__:
        if klass is object:
            break
        if name in set(_own_source_names(klass)):
            return SourceField(owner=klass, name=name, hint=_resolved_hints(klass).get(name))
    log.debug("No source field %s found for %s", name, cls)
    return None


def clear_field_tables() -> None:
    _declared_fields.cache_clear()
    _hierarchy_fields.cache_clear()
    _resolved_hints.cache_clear()


def is_mappable(cls: type) -> bool:
    """Whether ``cls`` declares any ``Source``, directly or through a builder marker."""
    if not isinstance(cls, type) or is_json_type(cls) or cls.__module__ == "builtins":
        return False
    if built_type(cls) is not None:
        return True
    return any(f.sources for f in hierarchy_fields(cls))
