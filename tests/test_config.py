import pytest
from pydantic import ValidationError

from fieldmap import MapperConfig


def test_defaults():
    cfg = MapperConfig()
    assert cfg.clear_json_cache is True
    assert cfg.support_adapters is True


def test_from_config_applies_profile_then_overrides():
    cfg = MapperConfig.from_config({"profile": "batch", "support_adapters": False})
    assert cfg.clear_json_cache is False
    assert cfg.support_adapters is False
    assert MapperConfig.from_config(None) == MapperConfig()


def test_unknown_profile_and_keys_are_rejected():
    with pytest.raises(ValueError):
        MapperConfig.from_config({"profile": "nope"})
    with pytest.raises(ValidationError):
        MapperConfig.from_config({"unknown": 1})


def test_config_is_frozen():
    cfg = MapperConfig()
    with pytest.raises(ValidationError):
        cfg.support_adapters = False


def test_from_yaml(tmp_path):
    p = tmp_path / "fieldmap.yml"
    p.write_text("mapper:\n  profile: plain\n", encoding="utf-8")
    cfg = MapperConfig.from_yaml(p)
    assert cfg.support_adapters is False
    assert cfg.clear_json_cache is True


def test_from_yaml_without_section(tmp_path):
    p = tmp_path / "fieldmap.yml"
    p.write_text("", encoding="utf-8")
    assert MapperConfig.from_yaml(p) == MapperConfig()
