"""
Declaring where destination fields get their values.

Exports the public API:
- Source, Adapter, UNSET
- source_defaults, builder_for, wire_names
- declare_sources, load_descriptor_table
"""
from .types import UNSET, Adapter, EffectiveSource, Source
from .markers import builder_for, source_defaults, wire_names
from .merge import merge
from .table import declare_sources
from .load import load_descriptor_table, register_table
