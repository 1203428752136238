from __future__ import annotations

import pytest

from ots_scenario.codec.lexical import parse_quantity
from ots_scenario.codec.units import Dimension
from ots_scenario.domain.choice import ChoiceBuilder
from ots_scenario.domain.markov import LaneBias, LaneBiases, MarkovTable
from ots_scenario.domain.model import Model
from ots_scenario.domain.od import (
    Expression,
    HeadwayDistribution,
    LaneLink,
    OdOptions,
    OdOptionsItem,
    RoomChecker,
    SCOPE_ALTERNATIVES,
    parse_headway_distribution,
    scope,
)
from ots_scenario.domain.parameters import ParameterKind
from ots_scenario.utils.errors import (
    DomainViolationError,
    InvalidExpressionSyntaxError,
    MissingRequiredChoiceError,
    SchemaError,
    UnknownParentError,
    UnknownTokenError,
)


def test_headway_distribution_tokens_and_expressions():
    assert parse_headway_distribution("TRI_EXP") is HeadwayDistribution.TRI_EXP
    expr = parse_headway_distribution("{headway * 2}")
    assert expr == Expression("headway * 2")
    assert str(expr) == "{headway * 2}"
    with pytest.raises(UnknownTokenError):
        parse_headway_distribution("POISSON")
    with pytest.raises(InvalidExpressionSyntaxError):
        parse_headway_distribution("{}")


def test_options_item_with_all_options():
    markov = MarkovTable()
    markov.add_state("Car", 0.3)
    biases = LaneBiases().add_bias(LaneBias.from_right("Car", 0.0, bias=1.0))
    item = OdOptionsItem(
        scope=scope("Lane", LaneLink("AB", "L1")),
        no_lane_change=parse_quantity("50 m", Dimension.LENGTH),
        room_checker=RoomChecker.TTC,
        headway_dist=HeadwayDistribution.EXPONENTIAL,
        markov=markov,
        lane_biases=biases,
    )
    assert item.scope.value == LaneLink("AB", "L1")
    assert item.options() == ["no_lane_change", "room_checker", "headway_dist", "markov", "lane_biases"]


def test_options_item_checks():
    with pytest.raises(SchemaError):
        OdOptionsItem(scope=None)  # type: ignore[arg-type]
    with pytest.raises(MissingRequiredChoiceError):
        ChoiceBuilder("OdOptionsItem.Scope", SCOPE_ALTERNATIVES).build()
    with pytest.raises(DomainViolationError):
        OdOptionsItem(scope=scope("Global"), no_lane_change=parse_quantity("0 m", Dimension.LENGTH))
    with pytest.raises(SchemaError):
        OdOptionsItem(scope=scope("Global"), no_lane_change=parse_quantity("5 s", Dimension.DURATION))

    markov = MarkovTable()
    markov.add_state("Van", 0.3, parent="Car")
    with pytest.raises(UnknownParentError):
        OdOptionsItem(scope=scope("Origin", "A"), markov=markov)


def test_od_options_requires_items():
    with pytest.raises(SchemaError):
        OdOptions("od", ())
    options = OdOptions.of(
        "od",
        [OdOptionsItem(scope("Global"), room_checker=RoomChecker.CF), OdOptionsItem(scope("LinkType", "FREEWAY"))],
    )
    assert [item.scope.tag for item in options.scoped("LinkType")] == ["LinkType"]


def test_model_record():
    model = Model("idm", gtu_type="Car", parent="base")
    model.parameters.add_parameter("a", ParameterKind.ACCELERATION, "1.25 m/s2")
    assert model.parameters.get("a").value.si == pytest.approx(1.25)
    with pytest.raises(SchemaError):
        Model("")
    with pytest.raises(SchemaError):
        Model("m", parent="m")
