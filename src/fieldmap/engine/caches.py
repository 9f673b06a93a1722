# fieldmap/engine/caches.py

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable

_MISSING = object()


def memoize(table: Dict[Hashable, Any], key: Hashable, compute: Callable[[], Any]) -> Any:
    """
    Insert-if-absent. Two threads may both compute a missing entry; the
    first insert wins and both get that value back. ``None`` is cached too.
    """
    found = table.get(key, _MISSING)
    if found is not _MISSING:
        return found
    return table.setdefault(key, compute())


def nested(table: Dict[Hashable, Any], *keys: Hashable) -> Dict[Hashable, Any]:
    for k in keys:
        table = table.setdefault(k, {})
    return table


class MappingCaches:
    """
    Long-lived lookup tables shared by mappers.

    Entries never change once inserted, so concurrent readers need no lock.
    A process-wide instance, ``CACHES``, is used unless a mapper is given
    its own (tests do this to start from a clean slate).

    source_fields: (source type, name)                  -> SourceField | None
    resolutions:   (dest type, field, source type, groups) -> EffectiveSource | None
    getters:       dest type -> field -> (source type, groups) -> getter | None
    setters:       dest type -> field -> source type    -> setter
    json_paths:    expression text                      -> compiled JSONPath
    adapters:      field                                -> adapter instance | None
    """

    def __init__(self) -> None:
        self.source_fields: Dict[Hashable, Any] = {}
        self.resolutions: Dict[Hashable, Any] = {}
        self.getters: Dict[Hashable, Any] = {}
        self.setters: Dict[Hashable, Any] = {}
        self.json_paths: Dict[str, Any] = {}
        self.adapters: Dict[Hashable, Any] = {}

    def clear(self) -> None:
        for table in (self.source_fields, self.resolutions, self.getters,
                      self.setters, self.json_paths, self.adapters):
            table.clear()

    def sizes(self) -> Dict[str, int]:
        return {
            "source_fields": len(self.source_fields),
            "resolutions": len(self.resolutions),
            "getters": sum(len(by_source) for by_field in self.getters.values()
                           for by_source in by_field.values()),
            "setters": sum(len(by_source) for by_field in self.setters.values()
                           for by_source in by_field.values()),
            "json_paths": len(self.json_paths),
            "adapters": len(self.adapters),
        }


CACHES = MappingCaches()
