# fieldmap/sources/markers.py

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from .types import Source

_DEFAULTS_ATTR = "__fieldmap_defaults__"
_BUILDS_ATTR = "__fieldmap_builds__"
_WIRE_NAMES_ATTR = "__fieldmap_wire_names__"


# ---------------------------------------------------------------------------
# Class-level defaults
# ---------------------------------------------------------------------------

def source_defaults(**attrs):
    """
    Class decorator giving fallback values for every ``Source`` declared on
    the class and its subclasses::

        @source_defaults(field="json")
        @dataclass
        class Article:
            title: Annotated[Optional[str], Source(json_pointer="/title")] = None
    """
    defaults = Source(**attrs)

    def decorate(cls):
        setattr(cls, _DEFAULTS_ATTR, defaults)
        return cls

    return decorate


def class_defaults(cls: type) -> Optional[Source]:
    """Nearest ``source_defaults`` walking the MRO of ``cls``."""
    for klass in cls.__mro__:
        found = vars(klass).get(_DEFAULTS_ATTR)
        if found is not None:
            return found
    return None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def builder_for(product: type):
    """
    Mark a class as a builder of ``product``.

    Fields of the builder that carry no ``Source`` of their own use the
    descriptors of the same-named field on ``product``.
    """

    def decorate(cls):
        setattr(cls, _BUILDS_ATTR, product)
        return cls

    return decorate


def built_type(cls: type) -> Optional[type]:
    return vars(cls).get(_BUILDS_ATTR)


# ---------------------------------------------------------------------------
# Enum wire names
# ---------------------------------------------------------------------------

def wire_names(**names: str):
    """
    Enum decorator giving members an alternate name used on the wire::

        @wire_names(a="alfa")
        class Letter(Enum):
            a = 1
            b = 2
    """

    def decorate(cls):
        if not (isinstance(cls, type) and issubclass(cls, Enum)):
            raise TypeError(f"wire_names only applies to Enum classes, not {cls!r}")
        unknown = set(names) - set(cls.__members__)
        if unknown:
            raise ValueError(f"{cls.__qualname__} has no members {sorted(unknown)}")
        setattr(cls, _WIRE_NAMES_ATTR, {wire: cls[member] for member, wire in names.items()})
        return cls

    return decorate


def wire_name_map(enum_cls: type) -> Dict[str, Enum]:
    return getattr(enum_cls, _WIRE_NAMES_ATTR, {})
