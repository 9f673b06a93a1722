# fieldmap/mapper.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from fieldmap.config import MapperConfig
from fieldmap.engine import accessors
from fieldmap.engine.caches import CACHES, MappingCaches
from fieldmap.engine.context import JsonCache, MappingContext
from fieldmap.engine.fields import DestinationField, find_declared_field, hierarchy_fields
from fieldmap.engine.resolve import resolve
from fieldmap.errors import ConstructionError
from fieldmap.sources.types import EffectiveSource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomMapper:
    """
    A converter for values going into fields declared as ``destination_type``.

    ``fn(value, field_context)`` returns the converted value, or None to leave
    the value to the next converter / the generic handling. Only values that
    are instances of ``source_kind`` are offered.
    """

    destination_type: type
    fn: Callable[[Any, Any], Any]
    source_kind: type = object

    @property
    def name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


class Mapper:
    """
    Copies values from arbitrary source objects into destination objects
    whose fields declare their origin with ``Source`` descriptors.

    Instances hold only configuration and are never modified; ``with_config``
    and ``register_mapper`` return new mappers. Compiled lookups live in a
    ``MappingCaches`` (the process-wide ``CACHES`` unless one is passed).
    """

    def __init__(
        self,
        config: Optional[MapperConfig] = None,
        custom_mappers: Iterable[CustomMapper] = (),
        caches: Optional[MappingCaches] = None,
    ) -> None:
        self._config = config or MapperConfig()
        self._custom_mappers: Tuple[CustomMapper, ...] = tuple(custom_mappers)
        self._caches = caches if caches is not None else CACHES
        # used across calls only when clear_json_cache is off
        self._retained_json = JsonCache()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def config(self) -> MapperConfig:
        return self._config

    @property
    def custom_mappers(self) -> Tuple[CustomMapper, ...]:
        return self._custom_mappers

    @property
    def caches(self) -> MappingCaches:
        return self._caches

    def with_config(self, **changes: Any) -> "Mapper":
        config = MapperConfig(**{**self._config.model_dump(), **changes})
        return Mapper(config, self._custom_mappers, self._caches)

    def register_mapper(self, destination_type: type, fn: Callable[[Any, Any], Any],
                        source_kind: type = object) -> "Mapper":
        """A new mapper that also applies ``fn`` to values for ``destination_type`` fields."""
        custom = CustomMapper(destination_type=destination_type, fn=fn, source_kind=source_kind)
        return Mapper(self._config, self._custom_mappers + (custom,), self._caches)

    def clear_json_cache(self) -> None:
        """Forget JSON retained across calls (only used when ``clear_json_cache`` is off)."""
        self._retained_json.clear()

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    def map(self, source: Any, destination: Any, *groups: type) -> Any:
        """
        Copy every resolvable field from ``source`` into ``destination``.

        ``destination`` is either an instance, populated in place, or a class,
        instantiated without arguments first. Returns the destination.
        With ``groups``, descriptors gated by a group apply only if one of
        the given groups is a subclass of one of theirs.
        """
        if isinstance(destination, type):
            destination = self.new_instance(destination)
        ctx = self.context(groups)
        try:
            self.sub_map(source, destination, type(destination), ctx)
        finally:
            if self._config.clear_json_cache:
                ctx.json_cache.clear()
        return destination

    def context(self, groups: Iterable[type] = ()) -> MappingContext:
        json_cache = JsonCache() if self._config.clear_json_cache else self._retained_json
        return MappingContext(mapper=self, groups=frozenset(groups), json_cache=json_cache)

    def sub_map(self, source: Any, destination: Any, destination_type: type,
                ctx: MappingContext) -> None:
        """
        The field walk of ``map`` within an existing context: same groups,
        same JSON cache, nothing cleared afterwards. Ancestors' fields first.
        """
        if source is None:
            return
        for dest in hierarchy_fields(destination_type):
            self._get_and_set(dest, destination_type, source, destination, ctx)

    def sub_map_new(self, source: Any, destination_type: type, ctx: MappingContext,
                    dest_field: Optional[DestinationField] = None) -> Any:
        destination = self.new_instance(destination_type)
        log.debug("Sub-mapping %s into %s for %r", type(source).__name__,
                  destination_type.__qualname__, dest_field)
        self.sub_map(source, destination, destination_type, ctx)
        return destination

    @staticmethod
    def new_instance(destination_type: type) -> Any:
        try:
            return destination_type()
        except Exception as e:
            raise ConstructionError(destination_type, str(e)) from e

    def _get_and_set(self, dest: DestinationField, destination_type: type, source: Any,
                     destination: Any, ctx: MappingContext) -> None:
        source_type = type(source)
        get = accessors.getter(self._caches, dest, destination_type, source_type, ctx.groups)
        if get is None:
            log.debug("Ignored destination field %r (no matching source for %s)",
                      dest, source_type.__qualname__)
            return
        value = get(source, ctx)
        if value is None:
            log.debug("No value for %r (%s) from %s", dest, dest.sources, source_type.__qualname__)
            return
        accessors.setter(self._caches, dest, destination_type, source_type)(destination, value, ctx)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def source_getter(self, dest: DestinationField, source_type: type, *groups: type,
                      destination_type: Optional[type] = None) -> Optional[Callable[[Any], Any]]:
        """
        The compiled getter ``dest`` would use for sources of ``source_type``,
        bound to a fresh context, or None if the field would not be mapped.
        """
        destination_type = destination_type or dest.owner
        group_set = frozenset(groups)
        get = accessors.getter(self._caches, dest, destination_type, source_type, group_set)
        if get is None:
            return None
        return lambda source: get(source, self.context(group_set))

    def effective_source(self, dest: DestinationField, source_type: type, *groups: type,
                         destination_type: Optional[type] = None) -> Optional[EffectiveSource]:
        return resolve(self._caches, dest, destination_type or dest.owner, source_type, frozenset(groups))

    def mapped_properties(self, source_type: type, destination_type: type,
                          *groups: type) -> Dict[str, DestinationField]:
        """Destination fields, by name, that a source of ``source_type`` would populate."""
        group_set: FrozenSet[type] = frozenset(groups)
        result: Dict[str, DestinationField] = {}
        for dest in hierarchy_fields(destination_type):
            if resolve(self._caches, dest, destination_type, source_type, group_set) is not None:
                result[dest.name] = dest
        return result

    @staticmethod
    def destination_field(destination_type: type, name: str) -> DestinationField:
        found = find_declared_field(destination_type, name)
        if found is None:
            raise KeyError(f"{destination_type.__qualname__} declares no field {name!r}")
        return found
