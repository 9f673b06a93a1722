# fieldmap/engine/context.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, Optional, Tuple

if TYPE_CHECKING:
    from fieldmap.mapper import Mapper

    from .fields import DestinationField


class JsonCache:
    """
    Parsed JSON trees keyed by the identity of the raw value they came from.

    The raw value is kept alive next to its tree so its ``id`` cannot be
    reused while the entry exists. Never share one between concurrently
    running top-level calls.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple[Any, Any]] = {}

    def get_or_parse(self, raw: Any, parse: Callable[[Any], Any]) -> Any:
        entry = self._entries.get(id(raw))
        if entry is not None and entry[0] is raw:
            return entry[1]
        tree = parse(raw)
        self._entries[id(raw)] = (raw, tree)
        return tree

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class MappingContext:
    """
    Everything a mapping call needs below the entry point: the mapper (and
    so its config and converters), the requested groups and the call's JSON
    cache. Passed explicitly to compiled getters and setters.
    """

    mapper: "Mapper"
    groups: FrozenSet[type] = frozenset()
    json_cache: JsonCache = field(default_factory=JsonCache)

    @property
    def config(self):
        return self.mapper.config

    def sub_map(self, source: Any, destination_type: type,
                dest_field: Optional["DestinationField"] = None) -> Any:
        return self.mapper.sub_map_new(source, destination_type, self, dest_field)


@dataclass(frozen=True)
class FieldContext:
    """Handed to custom mappers next to the value being converted."""

    field: "DestinationField"
    destination_type: type
    context: MappingContext
