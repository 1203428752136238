"""Markov state table and lane-bias choices for categorical GTU-type sampling."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import networkx as nx

from ..codec.predicates import FRACTION, NON_NEGATIVE, POSITIVE
from ..codec.units import Dimension, Quantity
from ..utils.errors import (
    CorrelationRangeError,
    DuplicateStateError,
    ParentCycleError,
    SchemaError,
    UnknownParentError,
)
from ..utils.logging import get_logger
from .choice import Choice, ChoiceBuilder, ChoiceSequence

LOG = get_logger()


@dataclass(frozen=True)
class MarkovState:
    gtu_type: str
    correlation: float
    parent: Optional[str] = None


class MarkovTable:
    """Ordered Markov states; parents are weak references checked by :meth:`validate`."""

    def __init__(self) -> None:
        self._states: List[MarkovState] = []

    def add_state(self, gtu_type: str, correlation: float, parent: Optional[str] = None) -> MarkovState:
        if not gtu_type:
            raise SchemaError("markov state requires a GtuType")
        state = MarkovState(gtu_type=gtu_type, correlation=float(correlation), parent=parent or None)
        self._states.append(state)
        return state

    @property
    def states(self) -> Tuple[MarkovState, ...]:
        return tuple(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self):
        return iter(self.states)

    def state(self, gtu_type: str) -> Optional[MarkovState]:
        for s in self._states:
            if s.gtu_type == gtu_type:
                return s
        return None

    def graph(self) -> nx.DiGraph:
        """Parent -> child graph of the declared states."""
        graph = nx.DiGraph()
        for s in self._states:
            graph.add_node(s.gtu_type, correlation=s.correlation)
        for s in self._states:
            if s.parent is not None:
                graph.add_edge(s.parent, s.gtu_type)
        return graph

    def validate(self) -> None:
        """Check state integrity: duplicates, parents, cycles, then correlation ranges.

        Root correlations lie in (-1, 1). A child correlation lies in [0, 1) and
        is not below its parent's.
        """
        seen = set()
        for s in self._states:
            if s.gtu_type in seen:
                raise DuplicateStateError(s.gtu_type)
            seen.add(s.gtu_type)
        for s in self._states:
            if s.parent is not None and s.parent not in seen:
                raise UnknownParentError(s.gtu_type, s.parent)
        graph = self.graph()
        try:
            cycle = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            cycle = None
        if cycle is not None:
            path = [edge[0] for edge in cycle] + [cycle[0][0]]
            raise ParentCycleError(path)
        for s in self._states:
            _check_correlation(s, self.state(s.parent) if s.parent is not None else None)
        LOG.debug("markov table: %d state(s), %d root(s)", len(self._states), len(self.roots()))

    def roots(self) -> List[str]:
        return [s.gtu_type for s in self._states if s.parent is None]

    def children(self, gtu_type: str) -> List[str]:
        return [s.gtu_type for s in self._states if s.parent == gtu_type]

    def siblings(self, gtu_type: str) -> List[str]:
        """States sharing the parent of ``gtu_type`` (root states are siblings of each other)."""
        state = self.state(gtu_type)
        if state is None:
            return []
        return [
            s.gtu_type
            for s in self._states
            if s.parent == state.parent and s.gtu_type != gtu_type
        ]


def _check_correlation(state: MarkovState, parent: Optional[MarkovState]) -> None:
    c = state.correlation
    if parent is None:
        if not -1.0 < c < 1.0:
            raise CorrelationRangeError(state.gtu_type, c, "must lie in (-1, 1) for a root state")
        return
    if not 0.0 <= c < 1.0:
        raise CorrelationRangeError(state.gtu_type, c, "must lie in [0, 1) for a child state")
    if c < parent.correlation:
        raise CorrelationRangeError(
            state.gtu_type, c, f"is below the correlation {parent.correlation!r} of parent {parent.gtu_type}"
        )


# --- lane biases ---------------------------------------------------------------

ROAD_POSITION_ALTERNATIVES = ("FromLeft", "FromRight", "Speed")


@dataclass(frozen=True)
class SpeedRange:
    left_speed: Quantity
    right_speed: Quantity

    def __post_init__(self) -> None:
        for q in (self.left_speed, self.right_speed):
            if q.dimension is not Dimension.SPEED:
                raise SchemaError(f"lane bias speed must be a speed, got {q}")
            POSITIVE.check(q.magnitude)


@dataclass(frozen=True)
class LaneBias:
    gtu_type: str
    position: Choice
    bias: float
    sticky_lanes: Optional[int] = None

    def __post_init__(self) -> None:
        NON_NEGATIVE.check(self.bias)
        if self.sticky_lanes is not None:
            POSITIVE.check(self.sticky_lanes)
        if self.position.tag in ("FromLeft", "FromRight"):
            FRACTION.check(self.position.value)

    @classmethod
    def from_left(cls, gtu_type: str, fraction: float, bias: float, sticky_lanes: Optional[int] = None) -> "LaneBias":
        return cls(gtu_type, _position("FromLeft", fraction), bias, sticky_lanes)

    @classmethod
    def from_right(cls, gtu_type: str, fraction: float, bias: float, sticky_lanes: Optional[int] = None) -> "LaneBias":
        return cls(gtu_type, _position("FromRight", fraction), bias, sticky_lanes)

    @classmethod
    def by_speed(
        cls,
        gtu_type: str,
        left_speed: Quantity,
        right_speed: Quantity,
        bias: float,
        sticky_lanes: Optional[int] = None,
    ) -> "LaneBias":
        return cls(gtu_type, _position("Speed", SpeedRange(left_speed, right_speed)), bias, sticky_lanes)

    def road_position(self) -> Optional[float]:
        """Position measured from the right edge, or None when it depends on speed."""
        if self.position.tag == "FromRight":
            return self.position.value
        if self.position.tag == "FromLeft":
            return 1.0 - self.position.value
        return None


def _position(tag: str, value: object) -> Choice:
    choice = ChoiceBuilder("LaneBias.Position", ROAD_POSITION_ALTERNATIVES).set(tag, value).build_required()
    return choice


@dataclass(frozen=True)
class DefinedLaneBias:
    """Reference to the preset lane bias of a GTU type."""

    gtu_type: str


class LaneBiases(ChoiceSequence):
    ALTERNATIVES = ("LaneBias", "DefinedLaneBias")

    def __init__(self) -> None:
        super().__init__("LaneBiases", self.ALTERNATIVES)

    def add_bias(self, bias: LaneBias) -> "LaneBiases":
        self.append("LaneBias", bias)
        return self

    def add_defined(self, gtu_type: str) -> "LaneBiases":
        self.append("DefinedLaneBias", DefinedLaneBias(gtu_type))
        return self

    def for_gtu_type(self, gtu_type: str) -> Optional[Choice]:
        """Last entry naming ``gtu_type``; later entries override earlier ones."""
        found = None
        for entry in self:
            if entry.value.gtu_type == gtu_type:
                found = entry
        return found
