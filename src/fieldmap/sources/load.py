# fieldmap/sources/load.py
"""
Descriptor tables declared in YAML instead of in class bodies.

    version: "1"
    destination: myapp.models:Article
    defaults:
      field: json
    fields:
      title:
        - { json_pointer: /title }
        - { field: anotherJson, json_pointer: /title, source_class: myapp.io:Legacy }
      tags:
        - { json_path: "tags[*].name", groups: [myapp.groups:Full] }
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict, List, Union

import jsonschema
import yaml

from fieldmap.errors import DescriptorTableError

from .markers import source_defaults
from .table import declare_sources
from .types import Source

_CLASS_REF = {"type": "string", "pattern": r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$"}

_SOURCE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "field": {"type": "string"},
        "path": {"oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}]},
        "source_class": _CLASS_REF,
        "json_pointer": {"type": "string", "pattern": "^(/.*)?$"},
        "json_path": {"type": "string"},
        "groups": {"type": "array", "items": _CLASS_REF},
    },
    "not": {"required": ["json_pointer", "json_path"]},
}

TABLE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["destination", "fields"],
    "additionalProperties": False,
    "properties": {
        "version": {"type": "string"},
        "destination": _CLASS_REF,
        "defaults": _SOURCE_SCHEMA,
        "fields": {
            "type": "object",
            "additionalProperties": {"type": "array", "minItems": 1, "items": _SOURCE_SCHEMA},
        },
    },
}


def resolve_class(ref: str) -> type:
    """``package.module:Qual.Name`` -> the class."""
    module_name, _, qualname = ref.partition(":")
    try:
        obj: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise DescriptorTableError(f"Cannot resolve {ref!r}: {e}") from e
    if not isinstance(obj, type):
        raise DescriptorTableError(f"{ref!r} is not a class")
    return obj


def validate_table(doc: Any) -> None:
    try:
        jsonschema.validate(instance=doc, schema=TABLE_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise DescriptorTableError(f"Invalid descriptor table at {where}: {e.message}") from e


def build_source(spec: Dict[str, Any]) -> Source:
    spec = dict(spec)
    if "source_class" in spec:
        spec["source_class"] = resolve_class(spec["source_class"])
    if "groups" in spec:
        spec["groups"] = tuple(resolve_class(g) for g in spec["groups"])
    try:
        return Source(**spec)
    except ValueError as e:
        raise DescriptorTableError(str(e)) from e


def register_table(doc: Dict[str, Any]) -> type:
    """Validate ``doc`` and attach its descriptors to the destination class."""
    validate_table(doc)
    destination = resolve_class(doc["destination"])
    sources: Dict[str, List[Source]] = {
        name: [build_source(s) for s in specs] for name, specs in doc["fields"].items()
    }
    if doc.get("defaults"):
        source_defaults(**build_source(doc["defaults"]).declared())(destination)
    for name, declared in sources.items():
        declare_sources(destination, name, *declared)
    return destination


def load_descriptor_table(path: Union[str, Path]) -> type:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(str(p))
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DescriptorTableError(f"{p}: invalid YAML") from e
    return register_table(doc)
