"""Road layout and link records assembled from the codec and choice groups.

Curve evaluation is not done here: geometry variants carry their raw
parameters for the geometry component to consume.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ..codec.lexical import (
    enum_parser,
    parse_boolean,
    parse_double,
    parse_string,
    quantity_parser,
    resolve_attribute,
)
from ..codec.predicates import POSITIVE
from ..codec.units import Dimension, Quantity
from ..utils.constants import BEZIER_DEFAULTS, LINK_DEFAULTS
from ..utils.errors import SchemaError
from .choice import Choice, ChoiceBuilder, ChoiceSequence, Identified


class LaneKeeping(str, Enum):
    KEEPRIGHT = "KEEPRIGHT"
    KEEPLEFT = "KEEPLEFT"
    KEEPLANE = "KEEPLANE"


class Priority(str, Enum):
    PRIORITY = "PRIORITY"
    NONE = "NONE"
    TURN_ON_RED = "TURN_ON_RED"
    YIELD = "YIELD"
    STOP = "STOP"
    ALL_STOP = "ALL_STOP"
    BUS_STOP = "BUS_STOP"


class ArcDirection(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class StripeType(str, Enum):
    SOLID = "SOLID"
    DASHED = "DASHED"
    BLOCK = "BLOCK"
    DOUBLE = "DOUBLE"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


parse_length = quantity_parser(Dimension.LENGTH)


# --- geometry ------------------------------------------------------------------

FLATTENER_ALTERNATIVES = ("NumSegments", "DeviationAndAngle")


@dataclass(frozen=True)
class DeviationAndAngle:
    max_deviation: Quantity
    max_angle: float


@dataclass(frozen=True)
class Straight:
    pass


@dataclass(frozen=True)
class Bezier:
    shape: float = 1.0
    weighted: bool = False
    flattener: Optional[Choice] = None

    def __post_init__(self) -> None:
        POSITIVE.check(self.shape)

    @classmethod
    def from_attributes(
        cls,
        attributes: Mapping[str, str],
        flattener: Optional[Choice] = None,
        defaults: Mapping[str, str] = BEZIER_DEFAULTS,
    ) -> "Bezier":
        table = {**BEZIER_DEFAULTS, **defaults}
        shape = resolve_attribute(attributes, "Shape", parse_double, default=table["Shape"])
        weighted = resolve_attribute(attributes, "Weighted", parse_boolean, default=table["Weighted"])
        return cls(shape=shape, weighted=weighted, flattener=flattener)  # type: ignore[arg-type]


CLOTHOID_ALTERNATIVES = ("Interpolated", "Length", "A")


@dataclass(frozen=True)
class ClothoidByLength:
    length: Quantity
    start_curvature: Quantity
    end_curvature: Quantity


@dataclass(frozen=True)
class ClothoidByA:
    a: Quantity
    start_curvature: Quantity
    end_curvature: Quantity


@dataclass(frozen=True)
class Clothoid:
    definition: Choice
    flattener: Optional[Choice] = None
    end_elevation: Optional[Quantity] = None


@dataclass(frozen=True)
class Arc:
    radius: Quantity
    direction: ArcDirection
    flattener: Optional[Choice] = None

    def __post_init__(self) -> None:
        POSITIVE.check(self.radius.magnitude)


@dataclass(frozen=True)
class Polyline:
    coordinates: Tuple[Tuple[float, ...], ...]

    def __post_init__(self) -> None:
        if not self.coordinates:
            raise SchemaError("Polyline requires at least one Coordinate")


GEOMETRY_ALTERNATIVES = ("Straight", "Bezier", "Clothoid", "Arc", "Polyline")


# --- cross section -------------------------------------------------------------

OFFSET_ALTERNATIVES = (
    "CenterOffset",
    "LeftOffset",
    "RightOffset",
    "CenterOffsetStartEnd",
    "LeftOffsetStartEnd",
    "RightOffsetStartEnd",
)
WIDTH_ALTERNATIVES = ("Width", "WidthStartEnd")


@dataclass(frozen=True)
class SpeedLimit:
    gtu_type: str
    legal_speed_limit: Quantity


@dataclass(frozen=True)
class Lane:
    id: str
    lane_type: str
    offset: Choice
    width: Choice
    speed_limits: Tuple[SpeedLimit, ...] = ()


@dataclass(frozen=True)
class Stripe:
    type: StripeType
    offset: Choice
    id: Optional[str] = None
    width: Optional[Choice] = None


@dataclass(frozen=True)
class Shoulder:
    offset: Choice
    width: Choice
    id: Optional[str] = None
    lane_type: Optional[str] = None


@dataclass(frozen=True)
class NoTrafficLane:
    offset: Choice
    width: Choice
    id: Optional[str] = None


CROSS_SECTION_ALTERNATIVES = ("Stripe", "Lane", "Shoulder", "NoTrafficLane")


def offset_choice(tag: str, value: Any) -> Choice:
    choice = ChoiceBuilder("Offset", OFFSET_ALTERNATIVES).set(tag, value).build_required()
    return choice


def width_choice(tag: str, value: Any) -> Choice:
    choice = ChoiceBuilder("Width", WIDTH_ALTERNATIVES).set(tag, value).build_required()
    return choice


@dataclass
class BasicRoadLayout:
    """Cross-section elements in document order, from left to right."""

    elements: ChoiceSequence = field(
        default_factory=lambda: ChoiceSequence("RoadLayout", CROSS_SECTION_ALTERNATIVES)
    )
    speed_limits: Tuple[SpeedLimit, ...] = ()

    def add(self, tag: str, element: Any) -> "BasicRoadLayout":
        self.elements.append(tag, element)
        return self

    def lanes(self):
        return self.elements.of("Lane")

    def stripes(self):
        return self.elements.of("Stripe")


RoadLayout = Identified  # Identified[BasicRoadLayout]


@dataclass(frozen=True)
class LaneOverride:
    lane: str
    speed_limits: Tuple[SpeedLimit, ...] = ()


@dataclass(frozen=True)
class StripeOverride:
    stripe: str
    left_change_lane: Optional[bool] = None
    right_change_lane: Optional[bool] = None


@dataclass(frozen=True)
class DefinedLayout:
    """Reference to a named road layout, with per-lane and per-stripe overrides."""

    layout_id: str
    lane_overrides: Tuple[LaneOverride, ...] = ()
    stripe_overrides: Tuple[StripeOverride, ...] = ()


LAYOUT_ALTERNATIVES = ("RoadLayout", "DefinedLayout")


# --- link ----------------------------------------------------------------------


@dataclass(frozen=True)
class Link:
    id: str
    type: str
    node_start: str
    node_end: str
    geometry: Choice
    layout: Choice
    offset_start: Quantity
    offset_end: Quantity
    lane_keeping: LaneKeeping
    priority: Optional[Priority] = None
    conflict_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.geometry is None or self.geometry.tag not in GEOMETRY_ALTERNATIVES:
            raise SchemaError(f"Link {self.id}: geometry must be one of {', '.join(GEOMETRY_ALTERNATIVES)}")
        if self.layout is None or self.layout.tag not in LAYOUT_ALTERNATIVES:
            raise SchemaError(f"Link {self.id}: layout must be one of {', '.join(LAYOUT_ALTERNATIVES)}")

    @classmethod
    def builder(cls, attributes: Mapping[str, str], defaults: Mapping[str, str] = LINK_DEFAULTS) -> "LinkBuilder":
        return LinkBuilder(attributes, defaults)


class LinkBuilder:
    def __init__(self, attributes: Mapping[str, str], defaults: Mapping[str, str] = LINK_DEFAULTS) -> None:
        self._attributes = dict(attributes)
        self._defaults = {**LINK_DEFAULTS, **defaults}
        self._geometry: ChoiceBuilder = ChoiceBuilder("Link.Geometry", GEOMETRY_ALTERNATIVES)
        self._layout: ChoiceBuilder = ChoiceBuilder("Link.Layout", LAYOUT_ALTERNATIVES)

    def geometry(self, tag: str, value: Any) -> "LinkBuilder":
        self._geometry.set(tag, value)
        return self

    def layout(self, tag: str, value: Any) -> "LinkBuilder":
        self._layout.set(tag, value)
        return self

    def build(self) -> Link:
        attrs = self._attributes
        link_id = resolve_attribute(attrs, "Id", parse_string, required=True, owner="Link")
        owner = f"Link {link_id}"

        return Link(
            id=link_id,  # type: ignore[arg-type]
            type=resolve_attribute(attrs, "Type", parse_string, required=True, owner=owner),  # type: ignore[arg-type]
            node_start=resolve_attribute(attrs, "NodeStart", parse_string, required=True, owner=owner),  # type: ignore[arg-type]
            node_end=resolve_attribute(attrs, "NodeEnd", parse_string, required=True, owner=owner),  # type: ignore[arg-type]
            geometry=self._geometry.build(),  # type: ignore[arg-type]
            layout=self._layout.build(),  # type: ignore[arg-type]
            offset_start=resolve_attribute(attrs, "OffsetStart", parse_length, default=self._defaults["OffsetStart"]),  # type: ignore[arg-type]
            offset_end=resolve_attribute(attrs, "OffsetEnd", parse_length, default=self._defaults["OffsetEnd"]),  # type: ignore[arg-type]
            lane_keeping=resolve_attribute(
                attrs, "LaneKeeping", enum_parser(LaneKeeping), default=self._defaults["LaneKeeping"]
            ),  # type: ignore[arg-type]
            priority=resolve_attribute(attrs, "Priority", enum_parser(Priority)),
            conflict_id=attrs.get("ConflictId"),
        )
