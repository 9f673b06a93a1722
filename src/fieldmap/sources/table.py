# fieldmap/sources/table.py

from __future__ import annotations

import threading
from typing import Dict, List, Tuple

from .types import Source

# Descriptors declared outside the class body (programmatically or from
# YAML tables), keyed by declaring class and field name.
_DECLARED: Dict[type, Dict[str, List[Source]]] = {}
_LOCK = threading.Lock()


def declare_sources(cls: type, name: str, *sources: Source) -> None:
    """
    Attach ``sources`` to field ``name`` of ``cls`` without touching its
    annotations. Must happen before the first mapping into ``cls``: field
    tables are built once and cached.
    """
    if not sources:
        raise ValueError("declare_sources needs at least one Source")
    for s in sources:
        if not isinstance(s, Source):
            raise TypeError(f"Expected Source, got {s!r}")
    with _LOCK:
        _DECLARED.setdefault(cls, {}).setdefault(name, []).extend(sources)


def declared_sources(cls: type, name: str) -> Tuple[Source, ...]:
    return tuple(_DECLARED.get(cls, {}).get(name, ()))


def declared_field_names(cls: type) -> List[str]:
    return list(_DECLARED.get(cls, {}))


def forget_declarations(cls: type) -> None:
    with _LOCK:
        _DECLARED.pop(cls, None)
