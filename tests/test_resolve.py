from dataclasses import dataclass
from typing import Optional

from fieldmap import MappingCaches, Mapper, Source, declare_sources
from fieldmap.engine.fields import (
    clear_field_tables,
    declared_fields,
    hierarchy_fields,
    is_mappable,
    lookup_source_field,
)
from fieldmap.engine.resolve import groups_match, resolvable, resolve
from fieldmap.sources.table import forget_declarations

from fixture_models import (
    AnotherDestination,
    AnotherSource,
    BaseSource,
    Destination,
    ExtendedSourceObject,
    Gated,
    GatedSource,
    GroupA,
    GroupA1,
    GroupB,
    Item,
    Pair,
    PlainSource,
    PropertySource,
    Record,
    RecordBuilder,
    Release,
    SourceObject,
    SpecialSource,
    SubObject,
    Tagged,
)


def _field(cls, name):
    return Mapper.destination_field(cls, name)


# ==========================================================
# Field tables
# ==========================================================

def test_declared_fields_keep_declaration_order():
    names = [f.name for f in declared_fields(Destination)]
    assert names == ["title", "description", "more_json", "id", "broadcasters", "broadcasters2"]


def test_inherited_fields_belong_to_the_declaring_class():
    assert [f.name for f in declared_fields(AnotherDestination)] == ["description"]
    assert _field(AnotherDestination, "title").owner.__name__ == "AbstractDestination"
    assert [f.name for f in hierarchy_fields(AnotherDestination)] == ["title", "description"]


def test_source_fields_are_found_on_ancestors_and_properties():
    sf = lookup_source_field(ExtendedSourceObject, "json")
    assert sf.owner is SourceObject
    assert lookup_source_field(PropertySource, "code").name == "code"
    assert lookup_source_field(SourceObject, "nope") is None
    assert lookup_source_field(dict, "anything") is None


def test_namedtuple_and_instance_attribute_sources():
    sf = lookup_source_field(Pair, "subtitle")
    assert sf.owner is Pair
    assert not sf.dynamic

    sf = lookup_source_field(PlainSource, "title")
    assert sf.dynamic
    assert sf.get(PlainSource("x")) == "x"
    assert lookup_source_field(PropertySource, "code").dynamic is False


def test_declare_sources_adds_descriptors_outside_the_class_body():
    @dataclass
    class Late:
        name: Optional[str] = None

    declare_sources(Late, "name", Source(field="title"))
    (f,) = declared_fields(Late)
    assert f.sources == (Source(field="title"),)
    assert is_mappable(Late)


def test_forgotten_declarations_are_gone_after_reset():
    @dataclass
    class Scratch:
        name: Optional[str] = None

    declare_sources(Scratch, "name", Source(field="title"))
    assert declared_fields(Scratch)[0].sources

    forget_declarations(Scratch)
    clear_field_tables()
    assert declared_fields(Scratch)[0].sources == ()
    assert not is_mappable(Scratch)


def test_is_mappable():
    assert is_mappable(Destination)
    assert is_mappable(RecordBuilder)
    assert not is_mappable(SubObject)
    assert not is_mappable(dict)
    assert not is_mappable(str)


# ==========================================================
# Matching
# ==========================================================

def test_groups_match():
    assert groups_match((), ())
    assert groups_match((), (GroupB,))
    assert not groups_match((GroupA,), ())
    assert groups_match((GroupA,), (GroupA1,))
    assert not groups_match((GroupA1,), (GroupA,))
    assert not groups_match((GroupA,), (GroupB,))


def test_source_class_and_field_existence_select_the_descriptor():
    caches = MappingCaches()
    title = _field(Destination, "title")

    eff = resolve(caches, title, Destination, SourceObject)
    assert eff.field == "json"
    assert eff.source_class is SourceObject

    eff = resolve(caches, title, Destination, AnotherSource)
    assert eff.field == "another_json"


def test_restricted_descriptor_is_skipped_for_other_sources():
    caches = MappingCaches()
    id_field = _field(Destination, "id")
    assert resolve(caches, id_field, Destination, SourceObject) is None
    assert resolve(caches, id_field, Destination, ExtendedSourceObject).path == ("id",)


def test_more_specific_source_class_wins():
    caches = MappingCaches()
    label = _field(Tagged, "label")
    assert resolve(caches, label, Tagged, SpecialSource).field == "code"
    assert resolve(caches, label, Tagged, BaseSource).field == "name"


def test_gated_descriptor_needs_a_matching_group():
    caches = MappingCaches()
    value = _field(Gated, "value")
    assert resolve(caches, value, Gated, GatedSource).field == "regular"
    assert resolve(caches, value, Gated, GatedSource, frozenset({GroupA})).field == "alternative"
    assert resolve(caches, value, Gated, GatedSource, frozenset({GroupA1})).field == "alternative"
    assert resolve(caches, value, Gated, GatedSource, frozenset({GroupB})).field == "regular"


def test_json_sources_match_any_field_name():
    caches = MappingCaches()
    assert resolve(caches, _field(Item, "k"), Item, dict) is not None
    assert resolve(caches, _field(Item, "k"), Item, str) is not None


def test_class_defaults_apply_to_inherited_fields():
    caches = MappingCaches()
    eff = resolve(caches, _field(AnotherDestination, "title"), AnotherDestination, SourceObject)
    assert eff.field == "json"
    assert eff.json_pointer == "/title"


def test_builder_fields_use_the_product_descriptors():
    caches = MappingCaches()
    year = _field(RecordBuilder, "year")
    assert not year.sources
    eff = resolve(caches, year, RecordBuilder, Record)
    assert eff is None

    assert resolve(caches, year, RecordBuilder, Release).field == "released"


def test_resolvable_ignores_groups():
    caches = MappingCaches()
    broadcasters = _field(Destination, "broadcasters")
    assert resolve(caches, broadcasters, Destination, SourceObject) is None
    assert resolvable(caches, broadcasters, Destination, SourceObject)


def test_resolutions_are_cached_including_misses():
    caches = MappingCaches()
    id_field = _field(Destination, "id")
    resolve(caches, id_field, Destination, SourceObject)
    resolve(caches, id_field, Destination, SourceObject)
    assert caches.sizes()["resolutions"] == 1
    resolve(caches, id_field, Destination, ExtendedSourceObject)
    assert caches.source_fields[(ExtendedSourceObject, "sub_object")].owner is SourceObject
