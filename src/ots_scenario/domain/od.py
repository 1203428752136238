"""Origin-destination demand options."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..codec.lexical import parse_enum
from ..codec.predicates import POSITIVE
from ..codec.units import Dimension, Quantity
from ..utils.constants import EXPRESSION_FORBIDDEN_CHARS
from ..utils.errors import InvalidExpressionSyntaxError, SchemaError
from .choice import Choice, ChoiceBuilder
from .markov import LaneBiases, MarkovTable


class RoomChecker(str, Enum):
    CF = "CF"
    CF_UNCEAS = "CF_UNCEAS"
    TTC = "TTC"


class HeadwayDistribution(str, Enum):
    CONSTANT = "CONSTANT"
    EXPONENTIAL = "EXPONENTIAL"
    UNIFORM = "UNIFORM"
    TRIANGULAR = "TRIANGULAR"
    TRI_EXP = "TRI_EXP"
    LOGNORMAL = "LOGNORMAL"


@dataclass(frozen=True)
class Expression:
    """An engine-evaluated ``{...}`` expression kept as text."""

    text: str

    def __post_init__(self) -> None:
        if not self.text or any(ch in EXPRESSION_FORBIDDEN_CHARS for ch in self.text):
            raise InvalidExpressionSyntaxError(self.text)

    def __str__(self) -> str:
        return "{" + self.text + "}"


HeadwayDist = Union[HeadwayDistribution, Expression]


def parse_headway_distribution(text: str) -> HeadwayDist:
    token = text.strip()
    if token.startswith("{") and token.endswith("}"):
        return Expression(token[1:-1])
    return parse_enum(token, HeadwayDistribution)


@dataclass(frozen=True)
class LaneLink:
    link: str
    lane: str


SCOPE_ALTERNATIVES = ("Global", "LinkType", "Origin", "Lane")


def scope(tag: str, value: Any = None) -> Choice:
    """Build the scope choice of an options item; ``Global`` carries no value."""
    choice = ChoiceBuilder("OdOptionsItem.Scope", SCOPE_ALTERNATIVES).set(tag, value).build_required()
    return choice


@dataclass(frozen=True)
class OdOptionsItem:
    scope: Choice
    no_lane_change: Optional[Quantity] = None
    room_checker: Optional[RoomChecker] = None
    headway_dist: Optional[HeadwayDist] = None
    markov: Optional[MarkovTable] = None
    lane_biases: Optional[LaneBiases] = None

    def __post_init__(self) -> None:
        if self.scope is None or self.scope.tag not in SCOPE_ALTERNATIVES:
            raise SchemaError(f"options item scope must be one of {', '.join(SCOPE_ALTERNATIVES)}")
        if self.no_lane_change is not None:
            if self.no_lane_change.dimension is not Dimension.LENGTH:
                raise SchemaError(f"NoLaneChange must be a length, got {self.no_lane_change}")
            POSITIVE.check(self.no_lane_change.magnitude)
        if self.markov is not None:
            self.markov.validate()

    def options(self) -> List[str]:
        """Names of the options this item sets."""
        names = []
        for name in ("no_lane_change", "room_checker", "headway_dist", "markov", "lane_biases"):
            if getattr(self, name) is not None:
                names.append(name)
        return names


@dataclass(frozen=True)
class OdOptions:
    id: str
    items: Tuple[OdOptionsItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.items:
            raise SchemaError(f"OdOptions {self.id} requires at least one OdOptionsItem")

    @classmethod
    def of(cls, id: str, items: Sequence[OdOptionsItem]) -> "OdOptions":
        return cls(id, tuple(items))

    def scoped(self, tag: str) -> List[OdOptionsItem]:
        return [item for item in self.items if item.scope.tag == tag]
