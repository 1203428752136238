from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from ots_scenario.codec.lexical import parse_quantity
from ots_scenario.codec.units import Dimension
from ots_scenario.domain.distributions import Exponential, Poisson, Triangular, UnitDistribution
from ots_scenario.domain.network import LaneKeeping, StripeType
from ots_scenario.domain.od import HeadwayDistribution, LaneLink, RoomChecker
from ots_scenario.domain.parameters import Correlation, ParameterKind, ParamRef
from ots_scenario.parser.elements import (
    local_name,
    read_discrete_distribution,
    read_distribution,
    read_lane_biases,
    read_link,
    read_markov,
    read_model,
    read_od_options,
    read_parameters,
    read_road_layout,
)
from ots_scenario.utils.errors import (
    InvalidExpressionSyntaxError,
    MissingAttributeError,
    MultipleChoiceAlternativesError,
    ParentCycleError,
    SchemaError,
    UnknownAlternativeError,
)


def _xml(text: str) -> ET.Element:
    return ET.fromstring(text)


def test_local_name_strips_namespace():
    assert local_name("{http://www.opentrafficsim.org/ots}Link") == "Link"
    assert local_name("Link") == "Link"


def test_read_exponential_distribution():
    spec = read_distribution(_xml('<HeadwayDist><Exponential Lambda="2.5"/></HeadwayDist>'))
    assert spec.shape == Exponential(2.5)


def test_read_triangular_with_random_stream():
    spec = read_distribution(
        _xml(
            '<DoubleDist Id="x"><Triangular Min="1" Mode="2" Max="4"/>'
            "<RandomStream><Defined>generation</Defined></RandomStream></DoubleDist>"
        )
    )
    assert spec.shape == Triangular(1.0, 2.0, 4.0)
    assert spec.random_stream == "generation"

    spec = read_distribution(_xml("<D><Uniform Min='0' Max='1'/><RandomStream><Default/></RandomStream></D>"))
    assert spec.random_stream == "Default"


def test_read_distribution_rejects_two_shapes():
    with pytest.raises(MultipleChoiceAlternativesError):
        read_distribution(_xml('<D><Constant C="1"/><Normal Mu="0" Sigma="1"/></D>'))


def test_read_discrete_distribution():
    spec = read_discrete_distribution(_xml('<IntegerDist Id="n"><Poisson Lambda="3"/></IntegerDist>'))
    assert spec.shape == Poisson(3.0)


def test_read_parameters_in_document_order():
    table = read_parameters(
        _xml(
            """
            <ModelParameters xmlns="http://www.opentrafficsim.org/ots">
              <Duration Id="t">1.2 s</Duration>
              <LengthDist Id="s0" LengthUnit="m"><Normal Mu="3" Sigma="0.5"/></LengthDist>
              <IntegerDist Id="n"><Poisson Lambda="2"/></IntegerDist>
              <Fraction Id="f">0.8</Fraction>
              <Correlation Expression="x*0.5">
                <First><Length>s0</Length></First>
                <Then><Duration>t</Duration></Then>
              </Correlation>
            </ModelParameters>
            """
        )
    )
    assert table.name == "ModelParameters"
    assert [p.id for p in table.parameters] == ["t", "s0", "n", "f"]
    s0 = table.get("s0")
    assert s0.kind is ParameterKind.LENGTH_DIST
    assert isinstance(s0.value, UnitDistribution)
    assert s0.value.unit.suffix == "m"
    assert table.correlations == [
        Correlation(ParamRef("s0", ParameterKind.LENGTH), ParamRef("t", ParameterKind.DURATION), "x*0.5")
    ]


def test_read_parameters_errors():
    with pytest.raises(MissingAttributeError, match="LengthUnit"):
        read_parameters(_xml('<ModelParameters><LengthDist Id="s"><Constant C="1"/></LengthDist></ModelParameters>'))
    with pytest.raises(UnknownAlternativeError):
        read_parameters(_xml('<ModelParameters><Angle Id="a">1</Angle></ModelParameters>'))
    with pytest.raises(InvalidExpressionSyntaxError):
        read_parameters(
            _xml(
                '<ModelParameters><Correlation Expression="{x}"><Then><Double>a</Double></Then>'
                "</Correlation></ModelParameters>"
            )
        )
    with pytest.raises(SchemaError):
        read_parameters(_xml('<InputParameters><DoubleDist Id="d"><Constant C="1"/></DoubleDist></InputParameters>'))


def test_read_model():
    model = read_model(
        _xml('<Model Id="idm" Parent="base" GtuType="Car"><ModelParameters><Double Id="a">1</Double></ModelParameters></Model>')
    )
    assert model.id == "idm"
    assert model.parent == "base"
    assert model.parameters.get("a").value == 1.0


def test_read_markov():
    table = read_markov(
        _xml(
            '<Markov><State GtuType="Car" Correlation="0.4"/>'
            '<State GtuType="Van" Parent="Car" Correlation="0.6"/></Markov>'
        )
    )
    assert table.children("Car") == ["Van"]
    with pytest.raises(ParentCycleError):
        read_markov(
            _xml(
                '<Markov><State GtuType="A" Parent="B" Correlation="1.0"/>'
                '<State GtuType="B" Parent="A" Correlation="1.0"/></Markov>'
            )
        )


def test_read_lane_biases():
    biases = read_lane_biases(
        _xml(
            "<LaneBiases>"
            '<LaneBias GtuType="Truck"><FromLeft>0.2</FromLeft><Bias>2.0</Bias><StickyLanes>2</StickyLanes></LaneBias>'
            '<LaneBias GtuType="Car"><LeftSpeed>120 km/h</LeftSpeed><RightSpeed>80 km/h</RightSpeed><Bias>1.0</Bias></LaneBias>'
            '<DefinedLaneBias GtuType="Bus"/>'
            "</LaneBiases>"
        )
    )
    assert biases.tags() == ["LaneBias", "LaneBias", "DefinedLaneBias"]
    truck = biases[0].value
    assert truck.road_position() == pytest.approx(0.8)
    assert truck.sticky_lanes == 2
    assert biases[1].value.position.tag == "Speed"

    with pytest.raises(MultipleChoiceAlternativesError):
        read_lane_biases(
            _xml('<LaneBiases><LaneBias GtuType="Car"><FromLeft>0.2</FromLeft><FromRight>0.2</FromRight>'
                 "<Bias>1</Bias></LaneBias></LaneBiases>")
        )


def test_read_od_options():
    options = read_od_options(
        _xml(
            """
            <OdOptions Id="od">
              <OdOptionsItem><Global/><HeadwayDist>EXPONENTIAL</HeadwayDist><RoomChecker>CF</RoomChecker></OdOptionsItem>
              <OdOptionsItem>
                <Lane Link="AB" Lane="L1"/>
                <NoLaneChange>50 m</NoLaneChange>
                <Markov><State GtuType="Car" Correlation="0.3"/></Markov>
              </OdOptionsItem>
            </OdOptions>
            """
        )
    )
    first, second = options.items
    assert first.scope.tag == "Global"
    assert first.headway_dist is HeadwayDistribution.EXPONENTIAL
    assert first.room_checker is RoomChecker.CF
    assert second.scope.value == LaneLink("AB", "L1")
    assert second.no_lane_change == parse_quantity("50 m", Dimension.LENGTH)
    assert len(second.markov) == 1


def test_read_od_options_requires_scope_and_items():
    with pytest.raises(SchemaError):
        read_od_options(_xml('<OdOptions Id="od"/>'))
    with pytest.raises(SchemaError):
        read_od_options(_xml("<OdOptions><OdOptionsItem><RoomChecker>TTC</RoomChecker></OdOptionsItem></OdOptions>"))


def test_read_road_layout():
    layout = read_road_layout(
        _xml(
            """
            <RoadLayout Id="hw2">
              <SpeedLimit GtuType="Car" LegalSpeedLimit="100 km/h"/>
              <Stripe Type="SOLID"><CenterOffset>3.5 m</CenterOffset></Stripe>
              <Lane Id="L1" LaneType="FREEWAY"><CenterOffset>1.75 m</CenterOffset><Width>3.5 m</Width></Lane>
              <Lane Id="L2" LaneType="FREEWAY">
                <LeftOffsetStart>0.0 m</LeftOffsetStart><LeftOffsetEnd>0.5 m</LeftOffsetEnd>
                <WidthStart>3.5 m</WidthStart><WidthEnd>3.0 m</WidthEnd>
              </Lane>
              <Stripe Type="DASHED"><CenterOffset>0.0 m</CenterOffset></Stripe>
            </RoadLayout>
            """
        )
    )
    assert layout.id == "hw2"
    basic = layout.inner
    assert basic.elements.tags() == ["Stripe", "Lane", "Lane", "Stripe"]
    assert basic.speed_limits[0].legal_speed_limit.si == pytest.approx(100 / 3.6)
    lane2 = basic.lanes()[1]
    assert lane2.offset.tag == "LeftOffsetStartEnd"
    assert lane2.width.tag == "WidthStartEnd"
    assert basic.stripes()[1].type is StripeType.DASHED


def test_read_link_with_defaults():
    link = read_link(
        _xml(
            """
            <Link Id="AB" Type="FREEWAY" NodeStart="A" NodeEnd="B">
              <Bezier><Flattener><NumSegments>32</NumSegments></Flattener></Bezier>
              <DefinedLayout>hw2</DefinedLayout>
              <LaneOverride Lane="L1"><SpeedLimit GtuType="Car" LegalSpeedLimit="80 km/h"/></LaneOverride>
            </Link>
            """
        )
    )
    assert link.lane_keeping is LaneKeeping.KEEPRIGHT
    assert link.offset_start == parse_quantity("0.0 m", Dimension.LENGTH)
    bezier = link.geometry.value
    assert bezier.shape == 1.0
    assert bezier.weighted is False
    assert bezier.flattener.value == 32
    layout = link.layout.value
    assert layout.layout_id == "hw2"
    assert layout.lane_overrides[0].lane == "L1"


def test_read_link_geometries():
    link = read_link(
        _xml(
            '<Link Id="c" Type="T" NodeStart="A" NodeEnd="B" LaneKeeping="KEEPLANE">'
            "<Clothoid><Length>100 m</Length><StartCurvature>0 /m</StartCurvature>"
            "<EndCurvature>0.01 /m</EndCurvature></Clothoid><DefinedLayout>x</DefinedLayout></Link>"
        )
    )
    assert link.geometry.value.definition.tag == "Length"
    assert link.lane_keeping is LaneKeeping.KEEPLANE

    link = read_link(
        _xml(
            '<Link Id="p" Type="T" NodeStart="A" NodeEnd="B">'
            "<Polyline><Coordinate>(0, 0)</Coordinate><Coordinate>(10, 5)</Coordinate></Polyline>"
            '<RoadLayout><Lane Id="L" LaneType="T"><CenterOffset>0 m</CenterOffset><Width>3 m</Width></Lane></RoadLayout>'
            "</Link>"
        )
    )
    assert link.geometry.value.coordinates == ((0.0, 0.0), (10.0, 5.0))
    assert link.layout.tag == "RoadLayout"


def _clothoid_link(body: str):
    return read_link(
        _xml(
            f'<Link Id="c" Type="T" NodeStart="A" NodeEnd="B"><Clothoid>{body}</Clothoid>'
            "<DefinedLayout>x</DefinedLayout></Link>"
        )
    )


def test_read_clothoid_a_is_a_plain_length():
    link = _clothoid_link(
        "<A>-50 m</A><StartCurvature>0.02 /m</StartCurvature><EndCurvature>0 /m</EndCurvature>"
    )
    definition = link.geometry.value.definition
    assert definition.tag == "A"
    assert definition.value.a == parse_quantity("-50 m", Dimension.LENGTH)


def test_read_clothoid_rejects_curvature_without_length_or_a():
    with pytest.raises(SchemaError, match="StartCurvature requires Length or A"):
        _clothoid_link("<Interpolated/><StartCurvature>0.02 /m</StartCurvature>")
    with pytest.raises(MissingAttributeError):
        _clothoid_link("<Length>10 m</Length><StartCurvature>0.02 /m</StartCurvature>")


def test_read_link_requires_geometry_and_layout():
    with pytest.raises(SchemaError):
        read_link(_xml('<Link Id="x" Type="T" NodeStart="A" NodeEnd="B"><DefinedLayout>l</DefinedLayout></Link>'))
    with pytest.raises(SchemaError):
        read_link(_xml('<Link Id="x" Type="T" NodeStart="A" NodeEnd="B"><Straight/></Link>'))
    with pytest.raises(SchemaError):
        read_link(
            _xml('<Link Id="x" Type="T" NodeStart="A" NodeEnd="B"><Straight/><LaneOverride Lane="L"/>'
                 "<RoadLayout/></Link>")
        )
