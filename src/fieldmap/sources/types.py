# fieldmap/sources/types.py

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Tuple


class _Unset:
    """Marker for a descriptor attribute that was not given."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Unset, ())


UNSET: Any = _Unset()


def _as_tuple(value: Any) -> Any:
    if value is UNSET:
        return UNSET
    if isinstance(value, (str, type)):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Source:
    """
    Where the value of a destination field comes from.

    Put one or more of these in the ``Annotated`` metadata of a field::

        title: Annotated[Optional[str],
                         Source(field="json", json_pointer="/title", source_class=Record),
                         Source(field="anotherJson", json_pointer="/title")] = None

    Attributes left out stay ``UNSET`` and are filled in from the class-level
    defaults (see ``source_defaults``) or the built-in defaults when the
    descriptor is merged.

    field:        name of the source field; empty means the destination field's name
    path:         further attribute names to descend into after ``field``
    source_class: only applies to sources that are instances of this type
    json_pointer: RFC 6901 pointer into the JSON held by the source field
    json_path:    JSONPath expression into the JSON held by the source field
    groups:       marker types; the descriptor only applies when the caller
                  asks for a group that is a subclass of one of them
    """

    field: Any = UNSET
    path: Any = UNSET
    source_class: Any = UNSET
    json_pointer: Any = UNSET
    json_path: Any = UNSET
    groups: Any = UNSET

    def __post_init__(self):
        object.__setattr__(self, "path", _as_tuple(self.path))
        object.__setattr__(self, "groups", _as_tuple(self.groups))

        if self.source_class is not UNSET and not isinstance(self.source_class, type):
            raise ValueError(f"source_class must be a type, got {self.source_class!r}")
        if self.groups is not UNSET:
            bad = [g for g in self.groups if not isinstance(g, type)]
            if bad:
                raise ValueError(f"groups must be types, got {bad!r}")
        if self.json_pointer and not self.json_pointer.startswith("/"):
            raise ValueError(f"json_pointer must start with '/': {self.json_pointer!r}")
        if self.json_pointer and self.json_path:
            raise ValueError("json_pointer and json_path are mutually exclusive")

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def declared(self) -> dict:
        """Only the attributes that were actually given."""
        return {f.name: getattr(self, f.name) for f in fields(self) if self.is_set(f.name)}


@dataclass(frozen=True)
class EffectiveSource:
    """A ``Source`` after merging with class-level and built-in defaults."""

    field: str = ""
    path: Tuple[str, ...] = ()
    source_class: type = object
    json_pointer: str = ""
    json_path: str = ""
    groups: Tuple[type, ...] = ()

    @property
    def uses_json(self) -> bool:
        return bool(self.json_pointer or self.json_path)

    def source_field_name(self, destination_name: str) -> str:
        return self.field or destination_name

    def describe(self) -> str:
        parts = [self.field or "<same name>"]
        parts.extend(self.path)
        out = ".".join(parts)
        if self.json_pointer:
            out += f" @ {self.json_pointer}"
        elif self.json_path:
            out += f" $ {self.json_path}"
        if self.source_class is not object:
            out += f" (from {self.source_class.__qualname__})"
        return out


@dataclass(frozen=True)
class Adapter:
    """
    Field metadata naming an external type adapter.

    ``adapter`` is a class constructible without arguments whose instances
    expose ``unmarshal(value)``.
    """

    adapter: type
