"""Shared constants mirroring the scenario schema's literal conventions."""
from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULTS_JSON_PATH = DATA_DIR / "attribute_defaults.json"
DEFAULTS_SCHEMA_JSON_PATH = DATA_DIR / "attribute_defaults.schema.json"

# Fixed defaults declared by the scenario schema. data/attribute_defaults.json
# ships the same literals; an injected table is merged over these.
LINK_DEFAULTS: Mapping[str, str] = MappingProxyType(
    {"OffsetStart": "0.0 m", "OffsetEnd": "0.0 m", "LaneKeeping": "KEEPRIGHT"}
)
BEZIER_DEFAULTS: Mapping[str, str] = MappingProxyType({"Shape": "1.0", "Weighted": "false"})

# Characters that would collide with the expression template delimiters.
EXPRESSION_FORBIDDEN_CHARS = frozenset("{}")

BOOLEAN_TRUE_TOKENS = ("true", "1")
BOOLEAN_FALSE_TOKENS = ("false", "0")
