"""Load the schema-declared attribute defaults."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from jsonschema import Draft7Validator

from ..codec.lexical import (
    enum_parser,
    parse_boolean,
    parse_double,
    parse_double_positive,
    parse_fraction,
    parse_integer,
    parse_string,
    quantity_parser,
)
from ..codec.units import Dimension
from ..domain.network import LaneKeeping, Priority
from ..utils.constants import DEFAULTS_JSON_PATH, DEFAULTS_SCHEMA_JSON_PATH
from ..utils.errors import CodecError, DefaultsFileNotFound, SchemaValidationError
from ..utils.logging import get_logger

LOG = get_logger()

# Adapter per "type" token of the defaults document.
DEFAULT_TYPE_PARSERS: Dict[str, Callable[[str], Any]] = {
    "length": quantity_parser(Dimension.LENGTH),
    "speed": quantity_parser(Dimension.SPEED),
    "duration": quantity_parser(Dimension.DURATION),
    "double": parse_double,
    "positive_double": parse_double_positive,
    "fraction": parse_fraction,
    "integer": parse_integer,
    "boolean": parse_boolean,
    "string": parse_string,
    "lane_keeping": enum_parser(LaneKeeping),
    "priority": enum_parser(Priority),
}


def load_json_file(json_path: Path) -> Dict:
    if not json_path.exists():
        raise DefaultsFileNotFound(f"JSON not found: {json_path}")
    with json_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    LOG.info("loaded JSON: %s", json_path)
    return data


def _format_json_path(path_iterable) -> str:
    parts: List[str] = ["root"]
    for p in path_iterable:
        if isinstance(p, int):
            parts[-1] = parts[-1] + f"[{p}]"
        else:
            parts.append(str(p))
    return ".".join(parts)


def validate_json_schema(data: Dict, schema_json: Dict) -> None:
    validator = Draft7Validator(schema_json)
    errors = sorted(validator.iter_errors(data), key=lambda e: (list(e.path), list(e.schema_path)))
    if not errors:
        LOG.info("defaults schema validation: PASSED")
        return
    LOG.error("[SCH] defaults schema validation: FAILED (count=%d)", len(errors))
    for i, err in enumerate(errors, start=1):
        LOG.error(
            "[SCH] #%d path=%s | msg=%s | validator=%s | schema_path=%s",
            i,
            _format_json_path(err.path),
            err.message,
            err.validator,
            "/".join(map(str, err.schema_path)),
        )
    raise SchemaValidationError(f"defaults schema validation failed with {len(errors)} error(s)")


@dataclass(frozen=True)
class DeclaredDefault:
    element: str
    attribute: str
    type: str
    literal: str
    value: Any


class DeclaredDefaults:
    """Default literals keyed by element and attribute name."""

    def __init__(self, defaults: Mapping[str, Mapping[str, DeclaredDefault]]) -> None:
        self._defaults = {element: dict(attrs) for element, attrs in defaults.items()}

    @classmethod
    def from_json(cls, data: Dict, schema_json: Dict) -> "DeclaredDefaults":
        validate_json_schema(data, schema_json)
        table: Dict[str, Dict[str, DeclaredDefault]] = {}
        errors: List[str] = []
        for element, attrs in data["elements"].items():
            for attribute, entry in attrs.items():
                parser = DEFAULT_TYPE_PARSERS[entry["type"]]
                try:
                    value = parser(entry["value"])
                except CodecError as exc:
                    errors.append(f"[SCH] default {element}.{attribute}={entry['value']!r} is invalid: {exc}")
                    continue
                table.setdefault(element, {})[attribute] = DeclaredDefault(
                    element, attribute, entry["type"], entry["value"], value
                )
        if errors:
            for msg in errors:
                LOG.error(msg)
            raise SchemaValidationError(f"declared defaults rejected with {len(errors)} error(s)")
        LOG.info("declared defaults: %d element(s), %d attribute(s)", len(table), sum(len(a) for a in table.values()))
        return cls(table)

    @classmethod
    def load(
        cls,
        json_path: Path = DEFAULTS_JSON_PATH,
        schema_path: Path = DEFAULTS_SCHEMA_JSON_PATH,
    ) -> "DeclaredDefaults":
        return cls.from_json(load_json_file(json_path), load_json_file(schema_path))

    def get(self, element: str, attribute: str) -> Optional[DeclaredDefault]:
        return self._defaults.get(element, {}).get(attribute)

    def resolve(self, element: str, attribute: str, present_value: Optional[str]) -> Optional[str]:
        """Lexical value to parse: the present text, else the declared default literal."""
        if present_value is not None:
            return present_value
        declared = self.get(element, attribute)
        return declared.literal if declared is not None else None

    def for_element(self, element: str) -> Dict[str, str]:
        """Attribute -> default literal mapping, as taken by the record builders."""
        return {name: d.literal for name, d in self._defaults.get(element, {}).items()}

    def elements(self) -> List[str]:
        return list(self._defaults)
