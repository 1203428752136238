"""Numeric domain predicates used by the lexical adapters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..utils.errors import DomainViolationError


class Predicate:
    """A named test on a magnitude; ``check`` raises on violation."""

    name: str = "any"

    def accepts(self, value: float) -> bool:
        return True

    def check(self, value: float) -> float:
        if not self.accepts(value):
            raise DomainViolationError(self, value)
        return value

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class _Positive(Predicate):
    name: str = "positive (> 0)"

    def accepts(self, value: float) -> bool:
        return value > 0.0


@dataclass(frozen=True)
class _NonNegative(Predicate):
    name: str = "non-negative (>= 0)"

    def accepts(self, value: float) -> bool:
        return value >= 0.0


@dataclass(frozen=True)
class _PositiveInclusive(Predicate):
    # Standard deviation style domain: zero is a valid degenerate spread.
    name: str = "positive inclusive (>= 0)"

    def accepts(self, value: float) -> bool:
        return value >= 0.0


@dataclass(frozen=True)
class Bounded(Predicate):
    lo: Optional[float] = None
    hi: Optional[float] = None

    @property
    def name(self) -> str:  # type: ignore[override]
        lo = "-inf" if self.lo is None else repr(self.lo)
        hi = "inf" if self.hi is None else repr(self.hi)
        return f"bounded [{lo}, {hi}]"

    def accepts(self, value: float) -> bool:
        if self.lo is not None and value < self.lo:
            return False
        if self.hi is not None and value > self.hi:
            return False
        return True


@dataclass(frozen=True)
class AllOf(Predicate):
    parts: Tuple[Predicate, ...] = ()

    @property
    def name(self) -> str:  # type: ignore[override]
        return " and ".join(str(p) for p in self.parts)

    def accepts(self, value: float) -> bool:
        return all(p.accepts(value) for p in self.parts)


ANY = Predicate()
POSITIVE = _Positive()
NON_NEGATIVE = _NonNegative()
POSITIVE_INCLUSIVE = _PositiveInclusive()
FRACTION = Bounded(0.0, 1.0)


def all_of(*parts: Predicate) -> Predicate:
    if len(parts) == 1:
        return parts[0]
    return AllOf(tuple(parts))
