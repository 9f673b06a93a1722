# fieldmap/engine/accessors.py
"""
Compiled getters and setters.

For every (destination type, destination field, source type) the metadata
is read once and turned into closures that are reused on every later call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, FrozenSet, Optional, Sequence

from fieldmap.errors import EmbeddedJsonError

from . import jsonutil
from .caches import MappingCaches, memoize, nested
from .context import MappingContext
from .fields import DestinationField, SourceField, is_json_type
from .hints import accepts
from .resolve import resolvable, resolve, source_field
from .values import adapt

log = logging.getLogger(__name__)

Getter = Callable[[Any, MappingContext], Any]
Setter = Callable[[Any, Any, MappingContext], None]


def read_path(value: Any, path: Sequence[str]) -> Any:
    """Follow attribute names (or mapping keys) from ``value``; None stops the walk."""
    for p in path:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(p)
        else:
            value = getattr(value, p)
    return value


def _raw_reader(sf: SourceField, path: Sequence[str]) -> Callable[[Any], Any]:
    where = f"{sf.owner.__qualname__}.{sf.name}"

    def read(source: Any) -> Any:
        try:
            return read_path(sf.get(source), path)
        except AttributeError as e:
            log.warning("When reading %s%s: %s", where, "".join("." + p for p in path), e)
            return None

    return read


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------

def build_getter(caches: MappingCaches, dest: DestinationField, destination_type: type,
                 source_type: type, groups: FrozenSet[type]) -> Optional[Getter]:
    """Uncached form of ``getter``."""
    eff = resolve(caches, dest, destination_type, source_type, groups)
    if eff is None:
        return None
    if is_json_type(source_type):
        return jsonutil.tree_getter(eff, caches)

    sf = source_field(caches, source_type, eff.source_field_name(dest.name))
    if sf is None:
        return None
    read = _raw_reader(sf, eff.path)
    if eff.uses_json:
        return jsonutil.embedded_getter(eff, read, f"{sf.owner.__qualname__}.{sf.name}", caches)
    return lambda source, ctx: read(source)


def getter(caches: MappingCaches, dest: DestinationField, destination_type: type,
           source_type: type, groups: FrozenSet[type] = frozenset()) -> Optional[Getter]:
    table = nested(caches.getters, destination_type, dest)
    return memoize(table, (source_type, groups),
                   lambda: build_getter(caches, dest, destination_type, source_type, groups))


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------

def _noop(destination: Any, value: Any, ctx: MappingContext) -> None:
    pass


def build_setter(caches: MappingCaches, dest: DestinationField, destination_type: type,
                 source_type: type) -> Setter:
    """Uncached form of ``setter``."""
    if not resolvable(caches, dest, destination_type, source_type):
        return _noop

    def set_value(destination: Any, value: Any, ctx: MappingContext) -> None:
        try:
            value = adapt(value, dest, destination_type, ctx)
            if not accepts(dest.hint, value):
                raise TypeError(f"{type(value).__name__} value does not fit {dest.hint}")
            setattr(destination, dest.name, value)
        except EmbeddedJsonError:
            raise
        except Exception as e:
            log.warning("When setting %r in %r: %s", value, dest, e)

    return set_value


def setter(caches: MappingCaches, dest: DestinationField, destination_type: type,
           source_type: type) -> Setter:
    table = nested(caches.setters, destination_type, dest)
    return memoize(table, source_type,
                   lambda: build_setter(caches, dest, destination_type, source_type))
