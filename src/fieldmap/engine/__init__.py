"""
Resolution, compiled accessors and value adaptation behind ``Mapper``.
"""
from .caches import CACHES, MappingCaches
from .context import FieldContext, JsonCache, MappingContext
from .fields import DestinationField, SourceField
