# fieldmap/engine/jsonutil.py
"""
Values that live inside JSON held by a source field.

A source field may hold raw JSON (``bytes`` or ``str``) or an already parsed
tree (``dict``/``list``). The raw value is parsed leniently (unquoted keys,
single quotes, comments) at most once per mapping call, then a JSON pointer
or a JSONPath expression picks the value out.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Optional

import json5
import jsonpointer
from jsonpath_ng.ext import parse as jsonpath_parse

from fieldmap.errors import EmbeddedJsonError, MapError
from fieldmap.sources.types import EffectiveSource

from .caches import MappingCaches, memoize
from .context import MappingContext

log = logging.getLogger(__name__)

MISSING = object()

# wildcards, recursive descent, filters, slices and unions select several nodes
_INDEFINITE = re.compile(r"\.\.|\*|\?\(|\[[^\]'\"]*[:,][^\]]*\]")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_json(raw: Any, *, where: Optional[str] = None) -> Any:
    """Lenient parse of ``raw``; malformed input raises ``EmbeddedJsonError``."""
    if isinstance(raw, (dict, list)):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EmbeddedJsonError(f"{where or 'value'}: not UTF-8 encoded JSON", source_field=where) from e
    elif isinstance(raw, str):
        text = raw
    else:
        raise EmbeddedJsonError(
            f"{where or 'value'}: {type(raw).__name__} cannot be read as JSON", source_field=where)
    try:
        return json5.loads(text)
    except ValueError as e:
        raise EmbeddedJsonError(f"{where or 'value'}: malformed JSON: {e}", source_field=where) from e


def cached_tree(raw: Any, ctx: MappingContext, where: Optional[str] = None) -> Any:
    return ctx.json_cache.get_or_parse(raw, lambda r: parse_json(r, where=where))


# ---------------------------------------------------------------------------
# Locating nodes
# ---------------------------------------------------------------------------

def at_pointer(tree: Any, pointer: str) -> Any:
    """Node at an RFC 6901 pointer, or ``MISSING``."""
    node = jsonpointer.resolve_pointer(tree, pointer, MISSING)
    if isinstance(node, jsonpointer.EndOfList):
        return MISSING
    return node


def _compile(expression: str):
    try:
        return jsonpath_parse(expression)
    except Exception as e:
        raise MapError(f"Invalid JSONPath expression {expression!r}: {e}") from e


def compiled_path(caches: MappingCaches, expression: str):
    return memoize(caches.json_paths, expression, lambda: _compile(expression))


def is_definite(expression: str) -> bool:
    return _INDEFINITE.search(expression) is None


def at_path(tree: Any, expression: str, caches: MappingCaches) -> Any:
    """
    Evaluate a JSONPath expression. A definite path gives its single node
    (None when nothing matches); an indefinite one gives the list of matches.
    """
    found = [m.value for m in compiled_path(caches, expression).find(tree)]
    if not is_definite(expression):
        return found
    if not found:
        log.debug("No match for %s", expression)
        return None
    return found[0]


def descend(node: Any, key: str) -> Any:
    """Object-key lookup used for the ``field``/``path`` prefix inside a tree."""
    if isinstance(node, dict):
        return node.get(key, MISSING)
    return MISSING


def unwrap(node: Any) -> Any:
    """
    Native value for a located node. Arrays become fresh lists of unwrapped
    elements; objects stay as they are.
    """
    if node is MISSING:
        log.debug("Missing node")
        return None
    if isinstance(node, list):
        return [unwrap(e) for e in node]
    return node


def _select(eff: EffectiveSource, caches: MappingCaches) -> Callable[[Any], Any]:
    if eff.json_pointer:
        return lambda node: at_pointer(node, eff.json_pointer)
    if eff.json_path:
        return lambda node: at_path(node, eff.json_path, caches)
    return lambda node: node


# ---------------------------------------------------------------------------
# Getters
# ---------------------------------------------------------------------------

def tree_getter(eff: EffectiveSource, caches: MappingCaches) -> Callable[[Any, MappingContext], Any]:
    """
    Getter for a source object that is itself a parsed JSON tree: ``field``
    and ``path`` descend by key, then the pointer or path expression applies.
    """
    keys = ((eff.field,) if eff.field else ()) + tuple(eff.path)
    select = _select(eff, caches)

    def get(tree: Any, ctx: MappingContext) -> Any:
        node = tree
        for k in keys:
            node = descend(node, k)
            if node is MISSING:
                return None
        return unwrap(select(node))

    return get


def embedded_getter(eff: EffectiveSource, raw_getter: Callable[[Any], Any], where: str,
                    caches: MappingCaches) -> Callable[[Any, MappingContext], Any]:
    """
    Getter for JSON held by a field of an ordinary object. ``raw_getter``
    reads the field (following ``path``); its value is parsed through the
    call's JSON cache.
    """
    select = _select(eff, caches)

    def get(source: Any, ctx: MappingContext) -> Any:
        raw = raw_getter(source)
        if raw is None:
            return None
        return unwrap(select(cached_tree(raw, ctx, where)))

    return get
