"""Identifier-keyed typed parameters and correlation records."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..codec.lexical import (
    parse_boolean,
    parse_class_name,
    parse_double,
    parse_fraction,
    parse_integer,
    parse_string,
    quantity_parser,
)
from ..codec.units import Dimension, Quantity, Unit
from ..utils.constants import EXPRESSION_FORBIDDEN_CHARS
from ..utils.errors import InvalidExpressionSyntaxError, SchemaError
from ..utils.logging import get_logger
from .distributions import DiscreteDistributionSpec, DistributionSpec, UnitDistribution

LOG = get_logger()


class ParameterKind(str, Enum):
    DURATION = "Duration"
    DURATION_DIST = "DurationDist"
    LENGTH = "Length"
    LENGTH_DIST = "LengthDist"
    SPEED = "Speed"
    SPEED_DIST = "SpeedDist"
    ACCELERATION = "Acceleration"
    ACCELERATION_DIST = "AccelerationDist"
    LINEAR_DENSITY = "LinearDensity"
    LINEAR_DENSITY_DIST = "LinearDensityDist"
    FREQUENCY = "Frequency"
    FREQUENCY_DIST = "FrequencyDist"
    DOUBLE = "Double"
    DOUBLE_DIST = "DoubleDist"
    FRACTION = "Fraction"
    INTEGER = "Integer"
    INTEGER_DIST = "IntegerDist"
    BOOLEAN = "Boolean"
    STRING = "String"
    CLASS = "Class"

    @property
    def is_distribution(self) -> bool:
        return self.value.endswith("Dist")

    @property
    def dimension(self) -> Optional[Dimension]:
        return _DIMENSIONS.get(self.value.replace("Dist", ""))

    @property
    def unit_attribute(self) -> Optional[str]:
        """Name of the attribute carrying the unit of a dimensional distribution."""
        if self.is_distribution and self.dimension is not None:
            return self.value.replace("Dist", "Unit")
        return None


_DIMENSIONS: Dict[str, Dimension] = {
    "Duration": Dimension.DURATION,
    "Length": Dimension.LENGTH,
    "Speed": Dimension.SPEED,
    "Acceleration": Dimension.ACCELERATION,
    "LinearDensity": Dimension.LINEAR_DENSITY,
    "Frequency": Dimension.FREQUENCY,
}

_SCALAR_PARSERS: Dict[ParameterKind, Callable[[str], object]] = {
    ParameterKind.DURATION: quantity_parser(Dimension.DURATION),
    ParameterKind.LENGTH: quantity_parser(Dimension.LENGTH),
    ParameterKind.SPEED: quantity_parser(Dimension.SPEED),
    ParameterKind.ACCELERATION: quantity_parser(Dimension.ACCELERATION),
    ParameterKind.LINEAR_DENSITY: quantity_parser(Dimension.LINEAR_DENSITY),
    ParameterKind.FREQUENCY: quantity_parser(Dimension.FREQUENCY),
    ParameterKind.DOUBLE: parse_double,
    ParameterKind.FRACTION: parse_fraction,
    ParameterKind.INTEGER: parse_integer,
    ParameterKind.BOOLEAN: parse_boolean,
    ParameterKind.STRING: parse_string,
    ParameterKind.CLASS: parse_class_name,
}

# Kinds a correlation may name in its First/Then elements.
CORRELATABLE_KINDS = (
    ParameterKind.ACCELERATION,
    ParameterKind.DOUBLE,
    ParameterKind.DURATION,
    ParameterKind.FRACTION,
    ParameterKind.FREQUENCY,
    ParameterKind.INTEGER,
    ParameterKind.LENGTH,
    ParameterKind.LINEAR_DENSITY,
    ParameterKind.SPEED,
)

ParameterValue = Union[
    Quantity, float, int, bool, str, DistributionSpec, DiscreteDistributionSpec, UnitDistribution
]


@dataclass(frozen=True)
class TypedParameter:
    id: str
    kind: ParameterKind
    value: ParameterValue


@dataclass(frozen=True)
class ParamRef:
    """Weak reference to a parameter by id; resolved by the consumer."""

    id: str
    kind: Optional[ParameterKind] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise SchemaError("parameter reference requires an id")
        if self.kind is not None and self.kind not in CORRELATABLE_KINDS:
            raise SchemaError(f"parameter kind {self.kind.value} cannot take part in a correlation")


@dataclass(frozen=True)
class Correlation:
    first: Optional[ParamRef]
    then: ParamRef
    expression: str

    def __post_init__(self) -> None:
        if not self.expression or any(ch in EXPRESSION_FORBIDDEN_CHARS for ch in self.expression):
            raise InvalidExpressionSyntaxError(self.expression)


Entry = Union[TypedParameter, Correlation]


class ParameterTable:
    """Ordered declarative record of parameters and correlations.

    Entries keep document order. Duplicate ids are accepted; :meth:`resolve`
    applies last-write-wins and :meth:`duplicate_ids` reports the shadowed ids
    so a consumer can decide whether to reject them.
    """

    def __init__(
        self,
        name: str = "ModelParameters",
        *,
        allow_distributions: bool = True,
        allow_correlations: bool = True,
    ) -> None:
        self.name = name
        self.allow_distributions = allow_distributions
        self.allow_correlations = allow_correlations
        self._entries: List[Entry] = []

    @classmethod
    def input_parameters(cls) -> "ParameterTable":
        return cls("InputParameters", allow_distributions=False, allow_correlations=False)

    def _check_id(self, id: str) -> None:
        if not id:
            raise SchemaError(f"{self.name}: parameter id must not be empty")

    def add_parameter(self, id: str, kind: ParameterKind, lexical_value: str) -> TypedParameter:
        self._check_id(id)
        parser = _SCALAR_PARSERS.get(kind)
        if parser is None:
            raise SchemaError(f"{self.name}: {kind.value} is a distribution kind, use add_distribution")
        param = TypedParameter(id, kind, parser(lexical_value))  # type: ignore[arg-type]
        self._entries.append(param)
        LOG.debug("%s: %s %s = %r", self.name, kind.value, id, lexical_value)
        return param

    def add_distribution(
        self,
        id: str,
        kind: ParameterKind,
        spec: Union[DistributionSpec, DiscreteDistributionSpec],
        unit: Optional[Unit] = None,
    ) -> TypedParameter:
        self._check_id(id)
        if not self.allow_distributions:
            raise SchemaError(f"{self.name}: distribution parameters are not allowed ({kind.value} {id})")
        if not kind.is_distribution:
            raise SchemaError(f"{self.name}: {kind.value} is not a distribution kind")
        value: ParameterValue
        if kind is ParameterKind.INTEGER_DIST:
            if not isinstance(spec, DiscreteDistributionSpec):
                raise SchemaError(f"{self.name}: IntegerDist {id} requires a discrete distribution")
            value = spec
        else:
            if not isinstance(spec, DistributionSpec):
                raise SchemaError(f"{self.name}: {kind.value} {id} requires a continuous distribution")
            dimension = kind.dimension
            if dimension is None:
                if unit is not None:
                    raise SchemaError(f"{self.name}: {kind.value} {id} takes no unit")
                value = spec
            else:
                if unit is None or unit.dimension is not dimension:
                    raise SchemaError(
                        f"{self.name}: {kind.value} {id} requires a {dimension.value} unit, got {unit}"
                    )
                value = UnitDistribution(spec, unit)
        param = TypedParameter(id, kind, value)
        self._entries.append(param)
        LOG.debug("%s: %s %s = %s", self.name, kind.value, id, spec.tag)
        return param

    def add_correlation(self, first: Optional[ParamRef], then: ParamRef, expression: str) -> Correlation:
        if not self.allow_correlations:
            raise SchemaError(f"{self.name}: correlations are not allowed")
        correlation = Correlation(first, then, expression)
        self._entries.append(correlation)
        return correlation

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def parameters(self) -> List[TypedParameter]:
        return [e for e in self._entries if isinstance(e, TypedParameter)]

    @property
    def correlations(self) -> List[Correlation]:
        return [e for e in self._entries if isinstance(e, Correlation)]

    def duplicate_ids(self) -> List[str]:
        counts = Counter(p.id for p in self.parameters)
        return [pid for pid, n in counts.items() if n > 1]

    def resolve(self) -> Dict[str, TypedParameter]:
        resolved: Dict[str, TypedParameter] = {}
        for param in self.parameters:
            if param.id in resolved:
                LOG.warning("%s: parameter %s shadows an earlier declaration", self.name, param.id)
            resolved[param.id] = param
        return resolved

    def get(self, id: str) -> Optional[TypedParameter]:
        found = None
        for param in self.parameters:
            if param.id == id:
                found = param
        return found

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self._entries)
