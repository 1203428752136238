"""Units of measure and unit-carrying quantities."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from ..utils.errors import UnknownUnitError


class Dimension(str, Enum):
    LENGTH = "length"
    DURATION = "duration"
    SPEED = "speed"
    ACCELERATION = "acceleration"
    LINEAR_DENSITY = "linear_density"
    FREQUENCY = "frequency"


@dataclass(frozen=True)
class Unit:
    dimension: Dimension
    suffix: str
    si_factor: float

    def __str__(self) -> str:
        return self.suffix


@dataclass(frozen=True)
class Quantity:
    """A magnitude expressed in one unit of one dimension."""

    magnitude: float
    unit: Unit

    @property
    def dimension(self) -> Dimension:
        return self.unit.dimension

    @property
    def si(self) -> float:
        return self.magnitude * self.unit.si_factor

    def to(self, suffix: str) -> "Quantity":
        target = unit_for(self.dimension, suffix)
        return Quantity(self.si / target.si_factor, target)

    def __str__(self) -> str:
        return f"{self.magnitude!r} {self.unit.suffix}"


_HOUR = 3600.0
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MILE = 1609.344
_YARD = 0.9144
_FOOT = 0.3048
_INCH = 0.0254
_KNOT = 1852.0 / _HOUR

_UNIT_TABLE: Dict[Dimension, List[Tuple[str, float]]] = {
    Dimension.LENGTH: [
        ("m", 1.0),
        ("mm", 1e-3),
        ("cm", 1e-2),
        ("dm", 1e-1),
        ("dam", 1e1),
        ("hm", 1e2),
        ("km", 1e3),
        ("mi", _MILE),
        ("y", _YARD),
        ("yd", _YARD),
        ("ft", _FOOT),
        ("in", _INCH),
    ],
    Dimension.DURATION: [
        ("s", 1.0),
        ("ms", 1e-3),
        ("min", 60.0),
        ("h", _HOUR),
        ("hr", _HOUR),
        ("d", _DAY),
        ("day", _DAY),
        ("wk", _WEEK),
        ("week", _WEEK),
    ],
    Dimension.SPEED: [
        ("m/s", 1.0),
        ("km/h", 1e3 / _HOUR),
        ("mi/h", _MILE / _HOUR),
        ("ft/s", _FOOT),
        ("kt", _KNOT),
    ],
    Dimension.ACCELERATION: [
        ("m/s2", 1.0),
        ("km/h2", 1e3 / _HOUR**2),
        ("ft/s2", _FOOT),
        ("mi/h2", _MILE / _HOUR**2),
    ],
    Dimension.LINEAR_DENSITY: [
        ("/m", 1.0),
        ("/mm", 1e3),
        ("/cm", 1e2),
        ("/dm", 1e1),
        ("/dam", 1e-1),
        ("/hm", 1e-2),
        ("/km", 1e-3),
        ("/mi", 1.0 / _MILE),
        ("/y", 1.0 / _YARD),
        ("/ft", 1.0 / _FOOT),
    ],
    Dimension.FREQUENCY: [
        ("/s", 1.0),
        ("/ms", 1e3),
        ("/min", 1.0 / 60.0),
        ("/h", 1.0 / _HOUR),
        ("/hr", 1.0 / _HOUR),
        ("/d", 1.0 / _DAY),
        ("/day", 1.0 / _DAY),
        ("/wk", 1.0 / _WEEK),
        ("/week", 1.0 / _WEEK),
        ("Hz", 1.0),
        ("kHz", 1e3),
    ],
}

_UNITS: Dict[Dimension, Dict[str, Unit]] = {
    dim: {suffix: Unit(dim, suffix, factor) for suffix, factor in rows}
    for dim, rows in _UNIT_TABLE.items()
}


def unit_for(dimension: Dimension, suffix: str) -> Unit:
    try:
        return _UNITS[dimension][suffix]
    except KeyError:
        raise UnknownUnitError(suffix, dimension.value) from None


def si_unit(dimension: Dimension) -> Unit:
    """The first listed unit of a dimension is its SI unit."""
    return _UNITS[dimension][_UNIT_TABLE[dimension][0][0]]

