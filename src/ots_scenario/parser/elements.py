"""Read ``xml.etree.ElementTree`` elements into typed scenario records.

Readers take elements the caller already holds. A ``{namespace}`` prefix on a
tag is ignored; includes and document loading are out of scope.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from ..codec.lexical import (
    enum_parser,
    parse_boolean,
    parse_coordinate,
    parse_double,
    parse_double_non_negative,
    parse_fraction,
    parse_positive_integer,
    parse_string,
    quantity_parser,
    resolve_attribute,
)
from ..codec.predicates import POSITIVE
from ..codec.units import Dimension, unit_for
from ..domain.choice import Choice, ChoiceBuilder, Identified
from ..domain.distributions import (
    RANDOM_STREAM_TAG,
    DiscreteDistributionSpec,
    DistributionSpec,
    _SpecBase,
)
from ..domain.markov import LaneBias, LaneBiases, MarkovTable, ROAD_POSITION_ALTERNATIVES, SpeedRange
from ..domain.model import Model
from ..domain.network import (
    CLOTHOID_ALTERNATIVES,
    FLATTENER_ALTERNATIVES,
    LINK_DEFAULTS,
    ArcDirection,
    Arc,
    BasicRoadLayout,
    Bezier,
    BEZIER_DEFAULTS,
    Clothoid,
    ClothoidByA,
    ClothoidByLength,
    DefinedLayout,
    DeviationAndAngle,
    Lane,
    LaneOverride,
    Link,
    NoTrafficLane,
    OFFSET_ALTERNATIVES,
    Polyline,
    Shoulder,
    SpeedLimit,
    Straight,
    Stripe,
    StripeOverride,
    StripeType,
    WIDTH_ALTERNATIVES,
)
from ..domain.od import (
    LaneLink,
    OdOptions,
    OdOptionsItem,
    RoomChecker,
    SCOPE_ALTERNATIVES,
    parse_headway_distribution,
)
from ..domain.parameters import CORRELATABLE_KINDS, ParameterKind, ParameterTable, ParamRef
from ..utils.errors import MissingAttributeError, SchemaError, UnknownAlternativeError
from ..utils.logging import get_logger

LOG = get_logger()

S = TypeVar("S", bound=_SpecBase)

parse_length = quantity_parser(Dimension.LENGTH)
parse_positive_length = quantity_parser(Dimension.LENGTH, POSITIVE)
parse_positive_speed = quantity_parser(Dimension.SPEED, POSITIVE)
parse_speed = quantity_parser(Dimension.SPEED)
parse_curvature = quantity_parser(Dimension.LINEAR_DENSITY)


def local_name(tag: str) -> str:
    """Tag without its ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _children(element: ET.Element) -> List[Tuple[str, ET.Element]]:
    return [(local_name(child.tag), child) for child in element if isinstance(child.tag, str)]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for tag, child in _children(element):
        if tag == name:
            return child
    return None


def _text(element: ET.Element) -> str:
    return (element.text or "").strip()


def _child_text(element: ET.Element, name: str, parser: Callable[[str], object]):
    child = _child(element, name)
    return None if child is None else parser(_text(child))


def _required_child_text(element: ET.Element, name: str, parser: Callable[[str], object]):
    child = _child(element, name)
    if child is None:
        raise MissingAttributeError(f"required element {name} in {local_name(element.tag)} is missing")
    return parser(_text(child))


# --- distributions -------------------------------------------------------------


def _read_random_stream(element: ET.Element) -> Optional[str]:
    stream = _child(element, RANDOM_STREAM_TAG)
    if stream is None:
        return None
    inner = _children(stream)
    if not inner:
        return _text(stream) or None
    tag, child = inner[0]
    return _text(child) or tag


def _read_spec(element: ET.Element, spec_cls: Type[S]) -> S:
    builder = spec_cls.builder()
    for tag, child in _children(element):
        if tag == RANDOM_STREAM_TAG:
            continue
        builder.set_attributes(tag, child.attrib)
    return builder.random_stream(_read_random_stream(element)).build()


def read_distribution(element: ET.Element) -> DistributionSpec:
    """Read a continuous distribution from the children of ``element``."""
    return _read_spec(element, DistributionSpec)


def read_discrete_distribution(element: ET.Element) -> DiscreteDistributionSpec:
    return _read_spec(element, DiscreteDistributionSpec)


# --- parameters ----------------------------------------------------------------

_PARAMETER_TAGS: Dict[str, ParameterKind] = {kind.value: kind for kind in ParameterKind}
_CORRELATABLE_TAGS = tuple(kind.value for kind in CORRELATABLE_KINDS)


def _read_param_ref(element: ET.Element, owner: str) -> ParamRef:
    choice = ChoiceBuilder(f"Correlation.{owner}", _CORRELATABLE_TAGS)
    for tag, child in _children(element):
        choice.set(tag, _text(child))
    selected = choice.build_required()
    return ParamRef(selected.value, ParameterKind(selected.tag))


def _read_correlation(table: ParameterTable, element: ET.Element) -> None:
    first_el = _child(element, "First")
    then_el = _child(element, "Then")
    if then_el is None:
        raise MissingAttributeError("required element Then in Correlation is missing")
    first = _read_param_ref(first_el, "First") if first_el is not None else None
    then = _read_param_ref(then_el, "Then")
    table.add_correlation(first, then, element.get("Expression", ""))


def read_parameters(element: ET.Element, table: Optional[ParameterTable] = None) -> ParameterTable:
    """Read a ``ModelParameters`` or ``InputParameters`` element in document order."""
    if table is None:
        name = local_name(element.tag)
        table = ParameterTable.input_parameters() if name == "InputParameters" else ParameterTable(name)
    for tag, child in _children(element):
        if tag == "Correlation":
            _read_correlation(table, child)
            continue
        kind = _PARAMETER_TAGS.get(tag)
        if kind is None:
            raise UnknownAlternativeError(f"{tag!r} is not a parameter element of {table.name}")
        pid = resolve_attribute(child.attrib, "Id", parse_string, required=True, owner=tag)
        if not kind.is_distribution:
            table.add_parameter(pid, kind, _text(child))  # type: ignore[arg-type]
            continue
        if kind is ParameterKind.INTEGER_DIST:
            table.add_distribution(pid, kind, read_discrete_distribution(child))  # type: ignore[arg-type]
            continue
        unit = None
        if kind.unit_attribute is not None:
            suffix = resolve_attribute(
                child.attrib, kind.unit_attribute, parse_string, required=True, owner=f"{tag} {pid}"
            )
            unit = unit_for(kind.dimension, suffix)  # type: ignore[arg-type]
        table.add_distribution(pid, kind, read_distribution(child), unit)  # type: ignore[arg-type]
    LOG.info("%s: %d parameter(s), %d correlation(s)", table.name, len(table.parameters), len(table.correlations))
    return table


def read_model(element: ET.Element) -> Model:
    owner = "Model"
    model = Model(
        id=resolve_attribute(element.attrib, "Id", parse_string, required=True, owner=owner),  # type: ignore[arg-type]
        gtu_type=element.get("GtuType"),
        parent=element.get("Parent"),
    )
    params = _child(element, "ModelParameters")
    if params is not None:
        read_parameters(params, model.parameters)
    return model


# --- markov and lane biases ----------------------------------------------------


def read_markov(element: ET.Element) -> MarkovTable:
    table = MarkovTable()
    for tag, child in _children(element):
        if tag != "State":
            raise UnknownAlternativeError(f"{tag!r} is not allowed in Markov (expected State)")
        attrs = child.attrib
        table.add_state(
            resolve_attribute(attrs, "GtuType", parse_string, required=True, owner="State"),  # type: ignore[arg-type]
            resolve_attribute(attrs, "Correlation", parse_double, required=True, owner="State"),  # type: ignore[arg-type]
            attrs.get("Parent"),
        )
    table.validate()
    return table


def _read_lane_bias(element: ET.Element) -> LaneBias:
    gtu_type = resolve_attribute(element.attrib, "GtuType", parse_string, required=True, owner="LaneBias")
    position = ChoiceBuilder("LaneBias.Position", ROAD_POSITION_ALTERNATIVES)
    from_left = _child_text(element, "FromLeft", parse_fraction)
    if from_left is not None:
        position.set("FromLeft", from_left)
    from_right = _child_text(element, "FromRight", parse_fraction)
    if from_right is not None:
        position.set("FromRight", from_right)
    left_speed = _child_text(element, "LeftSpeed", parse_positive_speed)
    right_speed = _child_text(element, "RightSpeed", parse_positive_speed)
    if left_speed is not None or right_speed is not None:
        if left_speed is None or right_speed is None:
            raise SchemaError(f"LaneBias {gtu_type}: LeftSpeed and RightSpeed must be given together")
        position.set("Speed", SpeedRange(left_speed, right_speed))  # type: ignore[arg-type]
    chosen = position.build_required()
    return LaneBias(
        gtu_type=gtu_type,  # type: ignore[arg-type]
        position=chosen,
        bias=_required_child_text(element, "Bias", parse_double_non_negative),  # type: ignore[arg-type]
        sticky_lanes=_child_text(element, "StickyLanes", parse_positive_integer),  # type: ignore[arg-type]
    )


def read_lane_biases(element: ET.Element) -> LaneBiases:
    biases = LaneBiases()
    for tag, child in _children(element):
        if tag == "LaneBias":
            biases.add_bias(_read_lane_bias(child))
        elif tag == "DefinedLaneBias":
            biases.add_defined(
                resolve_attribute(child.attrib, "GtuType", parse_string, required=True, owner=tag)  # type: ignore[arg-type]
            )
        else:
            raise UnknownAlternativeError(f"{tag!r} is not an alternative of choice LaneBiases")
    return biases


# --- od options ----------------------------------------------------------------


def _read_od_options_item(element: ET.Element) -> OdOptionsItem:
    scope = ChoiceBuilder("OdOptionsItem.Scope", SCOPE_ALTERNATIVES)
    item: Dict[str, object] = {}
    for tag, child in _children(element):
        if tag == "Global":
            scope.set(tag, None)
        elif tag in ("LinkType", "Origin"):
            scope.set(tag, _text(child))
        elif tag == "Lane":
            attrs = child.attrib
            scope.set(
                tag,
                LaneLink(
                    resolve_attribute(attrs, "Link", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                    resolve_attribute(attrs, "Lane", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                ),
            )
        elif tag == "NoLaneChange":
            item["no_lane_change"] = parse_positive_length(_text(child))
        elif tag == "RoomChecker":
            item["room_checker"] = enum_parser(RoomChecker)(_text(child))
        elif tag == "HeadwayDist":
            item["headway_dist"] = parse_headway_distribution(_text(child))
        elif tag == "Markov":
            item["markov"] = read_markov(child)
        elif tag == "LaneBiases":
            item["lane_biases"] = read_lane_biases(child)
        else:
            raise UnknownAlternativeError(f"{tag!r} is not allowed in OdOptionsItem")
    return OdOptionsItem(scope=scope.build(), **item)  # type: ignore[arg-type]


def read_od_options(element: ET.Element) -> OdOptions:
    options_id = element.get("Id", "")
    items = [_read_od_options_item(child) for tag, child in _children(element) if tag == "OdOptionsItem"]
    options = OdOptions.of(options_id, items)
    LOG.info("OdOptions %s: %d item(s)", options_id or "<anonymous>", len(options.items))
    return options


# --- road layout ---------------------------------------------------------------


def _read_start_end(element: ET.Element, base: str, alternatives: Tuple[str, ...], builder: ChoiceBuilder) -> None:
    single = _child(element, base)
    if single is not None:
        builder.set(base, parse_length(_text(single)))
    start = _child(element, f"{base}Start")
    end = _child(element, f"{base}End")
    if start is not None or end is not None:
        if start is None or end is None:
            raise SchemaError(f"{base}Start and {base}End must be given together")
        tag = f"{base}StartEnd" if f"{base}StartEnd" in alternatives else base
        builder.set(tag, (parse_length(_text(start)), parse_length(_text(end))))


def _read_offset(element: ET.Element) -> Choice:
    builder = ChoiceBuilder(f"{local_name(element.tag)}.Offset", OFFSET_ALTERNATIVES)
    for base in ("CenterOffset", "LeftOffset", "RightOffset"):
        _read_start_end(element, base, OFFSET_ALTERNATIVES, builder)
    choice = builder.build_required()
    return choice


def _read_width(element: ET.Element, required: bool = True) -> Optional[Choice]:
    builder = ChoiceBuilder(f"{local_name(element.tag)}.Width", WIDTH_ALTERNATIVES, required=required)
    _read_start_end(element, "Width", WIDTH_ALTERNATIVES, builder)
    return builder.build()


def _read_speed_limits(element: ET.Element) -> Tuple[SpeedLimit, ...]:
    limits = []
    for tag, child in _children(element):
        if tag != "SpeedLimit":
            continue
        attrs = child.attrib
        limits.append(
            SpeedLimit(
                resolve_attribute(attrs, "GtuType", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                resolve_attribute(attrs, "LegalSpeedLimit", parse_speed, required=True, owner=tag),  # type: ignore[arg-type]
            )
        )
    return tuple(limits)


def read_basic_road_layout(element: ET.Element) -> BasicRoadLayout:
    layout = BasicRoadLayout(speed_limits=_read_speed_limits(element))
    for tag, child in _children(element):
        attrs = child.attrib
        if tag == "SpeedLimit":
            continue
        if tag == "Lane":
            layout.add(
                tag,
                Lane(
                    id=resolve_attribute(attrs, "Id", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                    lane_type=resolve_attribute(attrs, "LaneType", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                    offset=_read_offset(child),
                    width=_read_width(child),  # type: ignore[arg-type]
                    speed_limits=_read_speed_limits(child),
                ),
            )
        elif tag == "Stripe":
            layout.add(
                tag,
                Stripe(
                    type=resolve_attribute(attrs, "Type", enum_parser(StripeType), required=True, owner=tag),  # type: ignore[arg-type]
                    offset=_read_offset(child),
                    id=attrs.get("Id"),
                    width=_read_width(child, required=False),
                ),
            )
        elif tag == "Shoulder":
            layout.add(
                tag,
                Shoulder(
                    offset=_read_offset(child),
                    width=_read_width(child),  # type: ignore[arg-type]
                    id=attrs.get("Id"),
                    lane_type=attrs.get("LaneType"),
                ),
            )
        elif tag == "NoTrafficLane":
            layout.add(tag, NoTrafficLane(offset=_read_offset(child), width=_read_width(child), id=attrs.get("Id")))  # type: ignore[arg-type]
        else:
            raise UnknownAlternativeError(f"{tag!r} is not an alternative of choice RoadLayout")
    return layout


def read_road_layout(element: ET.Element) -> Identified:
    """Read a named ``RoadLayout``; anonymous layouts inside a Link use an empty id."""
    layout = read_basic_road_layout(element)
    layout_id = element.get("Id", "")
    LOG.debug("RoadLayout %s: %s", layout_id or "<inline>", layout.elements.tags())
    return Identified(layout_id, layout)


# --- link ----------------------------------------------------------------------


def _read_flattener(element: ET.Element) -> Optional[Choice]:
    flattener = _child(element, "Flattener")
    if flattener is None:
        return None
    builder = ChoiceBuilder("Flattener", FLATTENER_ALTERNATIVES)
    segments = _child_text(flattener, "NumSegments", parse_positive_integer)
    if segments is not None:
        builder.set("NumSegments", segments)
    deviation = _child_text(flattener, "MaxDeviation", parse_positive_length)
    angle = _child_text(flattener, "MaxAngle", parse_double)
    if deviation is not None or angle is not None:
        if deviation is None or angle is None:
            raise SchemaError("Flattener MaxDeviation and MaxAngle must be given together")
        builder.set("DeviationAndAngle", DeviationAndAngle(deviation, angle))  # type: ignore[arg-type]
    return builder.build()


def _read_clothoid(element: ET.Element) -> Clothoid:
    definition = ChoiceBuilder("Clothoid", CLOTHOID_ALTERNATIVES)
    if _child(element, "Interpolated") is not None:
        definition.set("Interpolated", None)
    length = _child_text(element, "Length", parse_length)
    a = _child_text(element, "A", parse_length)
    if length is None and a is None:
        stray = [t for t in ("StartCurvature", "EndCurvature") if _child(element, t) is not None]
        if stray:
            raise SchemaError(f"Clothoid: {', '.join(stray)} requires Length or A")
    else:
        start = _required_child_text(element, "StartCurvature", parse_curvature)
        end = _required_child_text(element, "EndCurvature", parse_curvature)
        if length is not None:
            definition.set("Length", ClothoidByLength(length, start, end))  # type: ignore[arg-type]
        if a is not None:
            definition.set("A", ClothoidByA(a, start, end))  # type: ignore[arg-type]
    chosen = definition.build_required()
    return Clothoid(
        definition=chosen,
        flattener=_read_flattener(element),
        end_elevation=resolve_attribute(element.attrib, "EndElevation", parse_positive_length),  # type: ignore[arg-type]
    )


def _read_geometry(tag: str, element: ET.Element, bezier_defaults: Mapping[str, str]) -> object:
    if tag == "Straight":
        return Straight()
    if tag == "Bezier":
        return Bezier.from_attributes(element.attrib, _read_flattener(element), bezier_defaults)
    if tag == "Clothoid":
        return _read_clothoid(element)
    if tag == "Arc":
        attrs = element.attrib
        return Arc(
            radius=resolve_attribute(attrs, "Radius", parse_positive_length, required=True, owner=tag),  # type: ignore[arg-type]
            direction=resolve_attribute(attrs, "Direction", enum_parser(ArcDirection), required=True, owner=tag),  # type: ignore[arg-type]
            flattener=_read_flattener(element),
        )
    return Polyline(tuple(parse_coordinate(_text(c)) for t, c in _children(element) if t == "Coordinate"))


def read_link(
    element: ET.Element,
    defaults: Mapping[str, str] = LINK_DEFAULTS,
    bezier_defaults: Mapping[str, str] = BEZIER_DEFAULTS,
) -> Link:
    """Read a ``Link``; pass ``DeclaredDefaults.for_element(...)`` tables to override individual built-in defaults."""
    builder = Link.builder(element.attrib, defaults)
    lane_overrides: List[LaneOverride] = []
    stripe_overrides: List[StripeOverride] = []
    defined: Optional[str] = None
    for tag, child in _children(element):
        if tag in ("Straight", "Bezier", "Clothoid", "Arc", "Polyline"):
            builder.geometry(tag, _read_geometry(tag, child, bezier_defaults))
        elif tag == "RoadLayout":
            builder.layout(tag, read_road_layout(child))
        elif tag == "DefinedLayout":
            defined = _text(child)
        elif tag == "LaneOverride":
            lane_overrides.append(
                LaneOverride(
                    resolve_attribute(child.attrib, "Lane", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                    _read_speed_limits(child),
                )
            )
        elif tag == "StripeOverride":
            attrs = child.attrib
            stripe_overrides.append(
                StripeOverride(
                    resolve_attribute(attrs, "Stripe", parse_string, required=True, owner=tag),  # type: ignore[arg-type]
                    resolve_attribute(attrs, "LeftChangeLane", parse_boolean),
                    resolve_attribute(attrs, "RightChangeLane", parse_boolean),
                )
            )
        else:
            LOG.debug("Link %s: skipping <%s>", element.get("Id"), tag)
    if defined is not None:
        builder.layout("DefinedLayout", DefinedLayout(defined, tuple(lane_overrides), tuple(stripe_overrides)))
    elif lane_overrides or stripe_overrides:
        raise SchemaError(f"Link {element.get('Id')}: lane and stripe overrides require a DefinedLayout")
    return builder.build()
