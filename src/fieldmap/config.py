# fieldmap/config.py

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Profiles (optional presets)
# ---------------------------------------------------------------------------

CONFIG_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {"clear_json_cache": True, "support_adapters": True},
    "plain": {"support_adapters": False},
    # one JSON cache across calls, e.g. mapping many views of the same record
    "batch": {"clear_json_cache": False},
}


class MapperConfig(BaseModel):
    """
    How a ``Mapper`` behaves. Immutable; derive changed copies with
    ``model_copy(update=...)`` or ``Mapper.with_config``.

    clear_json_cache: drop parsed embedded JSON after every top-level call
    support_adapters: honour ``Adapter`` field metadata and enum wire names
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    clear_json_cache: bool = Field(default=True)
    support_adapters: bool = Field(default=True)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "MapperConfig":
        """
        Build from a mapping, e.g. the ``mapper`` section of a YAML file:

        mapper:
          profile: batch
          support_adapters: false
        """
        if cfg is None:
            return cls()

        cfg = dict(cfg)
        profile_name = cfg.pop("profile", None)
        if profile_name is not None and profile_name not in CONFIG_PROFILES:
            raise ValueError(f"Unknown mapper profile {profile_name!r}; "
                             f"expected one of {sorted(CONFIG_PROFILES)}")
        profile = CONFIG_PROFILES.get(profile_name, {}) if profile_name else {}
        return cls(**{**profile, **cfg})

    @classmethod
    def from_yaml(cls, path: Path, section: Optional[str] = "mapper") -> "MapperConfig":
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if section is not None:
            data = data.get(section)
        return cls.from_config(data)
