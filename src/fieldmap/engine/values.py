# fieldmap/engine/values.py
"""
Turning an extracted value into what the destination field expects.

Steps, each skipped for None:
  1. external adapter declared on the field (``Adapter`` metadata)
  2. enum coercion from text (wire names first, when adapters are enabled)
  3. custom mappers registered for the field's declared type
  4. structure: list elements and nested objects are sub-mapped into the
     declared element/field class
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from fieldmap.errors import ConstructionError
from fieldmap.sources.markers import wire_name_map

from .caches import MappingCaches, memoize
from .context import FieldContext, MappingContext
from .fields import DestinationField, is_mappable
from .hints import concrete_class, list_element_type

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 1. adapters
# ---------------------------------------------------------------------------

def adapter_for(caches: MappingCaches, dest: DestinationField) -> Optional[Any]:
    def build():
        if dest.adapter is None:
            return None
        try:
            return dest.adapter()
        except Exception as e:
            log.warning("Cannot instantiate adapter %s for %r: %s", dest.adapter, dest, e)
            return None

    return memoize(caches.adapters, dest, build)


def apply_adapter(value: Any, dest: DestinationField, caches: MappingCaches) -> Any:
    adapter = adapter_for(caches, dest)
    if adapter is None or value is None:
        return value
    return adapter.unmarshal(value)


# ---------------------------------------------------------------------------
# 2. enums
# ---------------------------------------------------------------------------

def coerce_enum(value: Any, enum_cls: Optional[type], wire: bool) -> Any:
    if not isinstance(value, str) or enum_cls is None or not issubclass(enum_cls, Enum):
        return value
    if wire:
        member = wire_name_map(enum_cls).get(value)
        if member is not None:
            return member
    member = enum_cls.__members__.get(value)
    if member is not None:
        return member
    log.debug("%r is not a member name of %s", value, enum_cls.__qualname__)
    return value


# ---------------------------------------------------------------------------
# 3. custom mappers
# ---------------------------------------------------------------------------

def apply_custom(value: Any, target: Optional[type], fctx: FieldContext) -> Any:
    """
    Run every converter registered for ``target`` whose source kind fits the
    value, in registration order. A None result or a failure keeps the
    previous value.
    """
    if value is None or target is None:
        return value
    for custom in fctx.context.mapper.custom_mappers:
        if custom.destination_type is not target or not isinstance(value, custom.source_kind):
            continue
        try:
            mapped = custom.fn(value, fctx)
        except Exception as e:
            log.warning("Custom mapper %s failed for %r: %s", custom.name, fctx.field, e)
            continue
        if mapped is not None:
            value = mapped
    return value


# ---------------------------------------------------------------------------
# 4. structure
# ---------------------------------------------------------------------------

def _sub_map_element(element: Any, element_type: type, dest: DestinationField,
                     fctx: FieldContext) -> Any:
    element = coerce_enum(element, element_type, fctx.context.config.support_adapters)
    element = apply_custom(element, element_type, fctx)
    if element is None or isinstance(element, element_type) or not is_mappable(element_type):
        return element
    try:
        return fctx.context.sub_map(element, element_type, dest)
    except ConstructionError as e:
        log.warning("%s", e)
        return None


def structure(value: Any, dest: DestinationField, fctx: FieldContext) -> Any:
    element_type = list_element_type(dest.hint)
    if isinstance(value, list) and element_type is not None:
        return [_sub_map_element(e, element_type, dest, fctx) for e in value]

    cls = concrete_class(dest.hint)
    if cls is not None and not isinstance(value, cls) and is_mappable(cls):
        return fctx.context.sub_map(value, cls, dest)
    return value


# ---------------------------------------------------------------------------

def adapt(value: Any, dest: DestinationField, destination_type: type, ctx: MappingContext) -> Any:
    """The full pipeline; exceptions from adapters and sub-mapping propagate."""
    config = ctx.config
    fctx = FieldContext(field=dest, destination_type=destination_type, context=ctx)

    if config.support_adapters:
        value = apply_adapter(value, dest, ctx.mapper.caches)
    declared = concrete_class(dest.hint)
    value = coerce_enum(value, declared, config.support_adapters)
    value = apply_custom(value, declared, fctx)
    if value is None:
        return None
    return structure(value, dest, fctx)
