# fieldmap/engine/resolve.py

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional

from fieldmap.sources.markers import built_type, class_defaults
from fieldmap.sources.merge import merge
from fieldmap.sources.types import EffectiveSource

from .caches import MappingCaches, memoize
from .fields import DestinationField, SourceField, find_declared_field, is_json_type, lookup_source_field

log = logging.getLogger(__name__)


def source_field(caches: MappingCaches, source_type: type, name: str) -> Optional[SourceField]:
    """Cached ``lookup_source_field``; misses are cached as well."""
    return memoize(caches.source_fields, (source_type, name),
                   lambda: lookup_source_field(source_type, name))


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------

def descriptor_field(dest: DestinationField) -> DestinationField:
    """
    The field whose descriptors apply to ``dest``: ``dest`` itself, or for an
    undecorated field of a builder, the same-named field of the built type.
    """
    if dest.sources:
        return dest
    product = built_type(dest.owner)
    if product is None:
        return dest
    target = find_declared_field(product, dest.name)
    if target is None or not target.sources:
        log.debug("Builder field %r has no counterpart with sources on %s", dest, product)
        return dest
    return target


def candidates(dest: DestinationField, destination_type: type) -> List[EffectiveSource]:
    target = descriptor_field(dest)
    defaults = class_defaults(destination_type if target is dest else target.owner)
    return [merge(s, defaults) for s in target.sources]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def groups_match(declared, requested) -> bool:
    """
    An ungated descriptor always applies. A gated one applies only when the
    caller asks for a group that is a subclass of one of its groups.
    """
    if not declared:
        return True
    return any(issubclass(g, d) for d in declared for g in requested)


def matches(caches: MappingCaches, effective: EffectiveSource, source_type: type,
            destination_name: str, groups, check_groups: bool = True) -> bool:
    if check_groups and not groups_match(effective.groups, groups):
        return False
    if not issubclass(source_type, effective.source_class):
        return False
    if is_json_type(source_type):
        return True
    name = effective.source_field_name(destination_name)
    return source_field(caches, source_type, name) is not None


def _more_specific(candidate: EffectiveSource, best: EffectiveSource) -> bool:
    if candidate.source_class is not best.source_class:
        return issubclass(candidate.source_class, best.source_class)
    return bool(candidate.groups) and not best.groups


def best_match(caches: MappingCaches, options: List[EffectiveSource], source_type: type,
               destination_name: str, groups) -> Optional[EffectiveSource]:
    """
    The most specific matching descriptor. Among equally specific (or
    unrelated) ones the first declared wins.
    """
    best = None
    for option in options:
        if not matches(caches, option, source_type, destination_name, groups):
            continue
        if best is None or _more_specific(option, best):
            best = option
        elif not _more_specific(best, option) and option != best:
            log.debug("Ambiguous sources for %s from %s: keeping %s over %s",
                      destination_name, source_type, best.describe(), option.describe())
    return best


def resolve(caches: MappingCaches, dest: DestinationField, destination_type: type,
            source_type: type, groups: FrozenSet[type] = frozenset()) -> Optional[EffectiveSource]:
    """The effective descriptor for ``dest`` given a concrete source type, or None."""
    key = (destination_type, dest, source_type, groups)
    return memoize(caches.resolutions, key, lambda: best_match(
        caches, candidates(dest, destination_type), source_type, dest.name, groups))


def resolvable(caches: MappingCaches, dest: DestinationField, destination_type: type,
               source_type: type) -> bool:
    """Whether some descriptor of ``dest`` could apply to ``source_type``, whatever the groups."""
    return any(matches(caches, option, source_type, dest.name, (), check_groups=False)
               for option in candidates(dest, destination_type))
