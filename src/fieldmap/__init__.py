"""
fieldmap: fill destination objects from arbitrary sources, field by field,
as declared by ``Source`` descriptors on the destination's fields.

    @dataclass
    class Article:
        title: Annotated[Optional[str], Source(field="json", json_pointer="/title")] = None

    article = fieldmap.map(record, Article)
"""
from typing import Any

from .config import MapperConfig
from .engine import CACHES, DestinationField, FieldContext, MappingCaches, MappingContext
from .errors import ConstructionError, DescriptorTableError, EmbeddedJsonError, MapError
from .mapper import CustomMapper, Mapper
from .sources import (
    UNSET,
    Adapter,
    EffectiveSource,
    Source,
    builder_for,
    declare_sources,
    load_descriptor_table,
    source_defaults,
    wire_names,
)

MAPPER = Mapper()


def map(source: Any, destination: Any, *groups: type) -> Any:
    """``Mapper.map`` on the default mapper."""
    return MAPPER.map(source, destination, *groups)


__all__ = [
    "MAPPER",
    "UNSET",
    "Adapter",
    "CACHES",
    "ConstructionError",
    "CustomMapper",
    "DescriptorTableError",
    "DestinationField",
    "EffectiveSource",
    "EmbeddedJsonError",
    "FieldContext",
    "MapError",
    "Mapper",
    "MapperConfig",
    "MappingCaches",
    "MappingContext",
    "Source",
    "builder_for",
    "declare_sources",
    "load_descriptor_table",
    "map",
    "source_defaults",
    "wire_names",
]
