# fieldmap/sources/merge.py

from __future__ import annotations

from dataclasses import fields
from typing import Optional

from .types import UNSET, EffectiveSource, Source

BUILTIN_DEFAULTS = EffectiveSource()


def merge(source: Source, defaults: Optional[Source] = None) -> EffectiveSource:
    """
    Combine a field-level ``Source`` with class-level ``defaults``.

    Per attribute: the field-level value if it was given, else the class
    default's value if that was given, else the built-in default. Pure, so
    results can be cached per resolution key.
    """
    merged = {}
    for f in fields(EffectiveSource):
        value = getattr(source, f.name)
        if value is UNSET and defaults is not None:
            value = getattr(defaults, f.name)
        if value is UNSET:
            value = getattr(BUILTIN_DEFAULTS, f.name)
        merged[f.name] = value

    # a pointer on the field replaces a path from the defaults, and vice versa
    if source.json_pointer:
        merged["json_path"] = ""
    elif source.json_path:
        merged["json_pointer"] = ""
    return EffectiveSource(**merged)
